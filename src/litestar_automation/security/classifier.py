"""Risk classification for operator commands.

Commands are normalized (trimmed, whitespace collapsed, lower-cased) and
tested against three ordered rule lists: dangerous, then moderate, then safe.
The first matching tier wins and anything no rule recognizes is dangerous.

Commands containing shell control syntax (command separators, pipes,
redirections, substitutions or line breaks) are always dangerous, since the
leading program alone no longer describes what the shell will run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from litestar_automation.core.types import SecurityLevel

__all__ = [
    "DEFAULT_RULES",
    "Classification",
    "CommandClassifier",
    "CommandRule",
    "classify_command",
    "normalize_command",
]

_WHITESPACE = re.compile(r"\s+")
_SHELL_CONTROL = re.compile(r"[;&|<>`\r\n]|\$\(")


def normalize_command(command: str | None) -> str:
    """Trim, collapse whitespace and lower-case a command.

    Args:
        command: The raw command.

    Returns:
        The normalized command, ``""`` for ``None``.
    """
    return _WHITESPACE.sub(" ", str(command or "").strip()).lower()


@dataclass(frozen=True)
class CommandRule:
    """A pattern that assigns a security level to matching commands.

    Attributes:
        name: Short identifier, reported with the classification.
        level: The level assigned on match.
        pattern: Regular expression tested against the normalized command.
    """

    name: str
    level: SecurityLevel
    pattern: re.Pattern[str]

    @classmethod
    def program(cls, level: SecurityLevel, words: str) -> CommandRule:
        """Build a rule matching a leading program (and subcommand).

        Args:
            level: The level assigned on match.
            words: Space-separated leading words, e.g. ``"git status"``.

        Returns:
            A rule anchored at the start and ending at whitespace or the end.
        """
        body = r"\s+".join(re.escape(word) for word in words.split())
        return cls(name=words, level=level, pattern=re.compile(rf"^{body}(\s|$)"))

    def matches(self, normalized: str) -> bool:
        """Test the rule against a normalized command."""
        return self.pattern.search(normalized) is not None


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a command.

    Attributes:
        command: The normalized command.
        level: The assigned level.
        rule: Name of the matching rule, ``None`` for the fail-closed default.
    """

    command: str
    level: SecurityLevel
    rule: str | None = None


_SAFE = SecurityLevel.SAFE
_MODERATE = SecurityLevel.MODERATE
_DANGEROUS = SecurityLevel.DANGEROUS

DEFAULT_RULES: Final[tuple[CommandRule, ...]] = (
    *(
        CommandRule.program(_DANGEROUS, words)
        for words in ("rm", "kill", "sudo", "systemctl", "reboot", "shutdown", "chmod", "chown", "pkill", "dd")
    ),
    CommandRule(
        name="find with actions",
        level=_DANGEROUS,
        pattern=re.compile(r"^find(\s.*)?\s-(exec|execdir|ok|okdir|delete|fprint0?|fprintf|fls)(\s|$)"),
    ),
    *(
        CommandRule.program(_MODERATE, words)
        for words in (
            "pm2 restart",
            "pm2 reload",
            "npm run build",
            "npm install",
            "git pull",
            "git checkout",
            "mkdir",
            "cp",
            "mv",
            "touch",
        )
    ),
    CommandRule(name="python", level=_MODERATE, pattern=re.compile(r"^python3?(\s|$)")),
    CommandRule(
        name="virtualenv python",
        level=_MODERATE,
        pattern=re.compile(r"^/home/ubuntu/\S+/venv/bin/python(\s|$)"),
    ),
    *(
        CommandRule.program(_SAFE, words)
        for words in (
            "ls",
            "cat",
            "df",
            "free",
            "ps",
            "uptime",
            "whoami",
            "hostname",
            "date",
            "pm2 list",
            "pm2 jlist",
            "git status",
            "git log",
            "npm list",
            "du",
            "head",
            "tail",
            "wc",
            "grep",
            "find",
        )
    ),
)
"""Built-in rules. Order within a level does not matter."""

_TIER_ORDER: Final = (SecurityLevel.DANGEROUS, SecurityLevel.MODERATE, SecurityLevel.SAFE)


class CommandClassifier:
    """Deterministic, total mapping from command strings to security levels.

    Example:
        >>> classifier = CommandClassifier()
        >>> classifier.classify("  GIT   status ")
        <SecurityLevel.SAFE: 'safe'>
        >>> classifier.classify("rm -rf /")
        <SecurityLevel.DANGEROUS: 'dangerous'>
        >>> classifier.classify("curl example.com")
        <SecurityLevel.DANGEROUS: 'dangerous'>
    """

    def __init__(self, rules: tuple[CommandRule, ...] | list[CommandRule] = DEFAULT_RULES) -> None:
        """Initialize the classifier.

        Args:
            rules: Rules to apply. Defaults to :data:`DEFAULT_RULES`.
        """
        self._tiers: dict[SecurityLevel, list[CommandRule]] = {level: [] for level in _TIER_ORDER}
        for rule in rules:
            self._tiers[rule.level].append(rule)

    def explain(self, command: str | None) -> Classification:
        """Classify a command and report which rule decided.

        Args:
            command: The raw command.

        Returns:
            The classification.
        """
        normalized = normalize_command(command)
        if _SHELL_CONTROL.search(str(command or "").strip()):
            return Classification(command=normalized, level=_DANGEROUS, rule="shell control syntax")
        for level in _TIER_ORDER:
            for rule in self._tiers[level]:
                if rule.matches(normalized):
                    return Classification(command=normalized, level=level, rule=rule.name)
        return Classification(command=normalized, level=_DANGEROUS)

    def classify(self, command: str | None) -> SecurityLevel:
        """Classify a command.

        Args:
            command: The raw command.

        Returns:
            ``safe``, ``moderate`` or ``dangerous``.
        """
        return self.explain(command).level


_default_classifier = CommandClassifier()


def classify_command(command: str | None) -> SecurityLevel:
    """Classify a command with the built-in rules.

    Args:
        command: The raw command.

    Returns:
        The command's security level.
    """
    return _default_classifier.classify(command)
