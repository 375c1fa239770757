"""Attribute processes to named applications by command-line pattern."""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ramdash.models import ApplicationGroup, ProcessRecord, kb_to_mb


@dataclass(slots=True, frozen=True)
class Rule:
    """
    A classification rule.

    A command matches when ``pattern`` is found and ``exclude`` (if any) is
    not. Rules are evaluated in list order and the first match owns the
    process.
    """

    name: str
    pattern: re.Pattern[str]
    color: str
    exclude: re.Pattern[str] | None = None

    def matches(self, command: str) -> bool:
        """Check whether this rule claims the command."""
        if not self.pattern.search(command):
            return False
        return self.exclude is None or not self.exclude.search(command)


def _rule(name: str, pattern: str, color: str, exclude: str | None = None) -> Rule:
    return Rule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        color=color,
        exclude=re.compile(exclude, re.IGNORECASE) if exclude else None,
    )


DEFAULT_RULES: tuple[Rule, ...] = (
    _rule("Chrome", r"Google Chrome|chrome", "#4285f4"),
    _rule("Claude Code", r"claude", "#cc785c"),
    _rule("VS Code", r"Visual Studio Code|Code Helper", "#007acc"),
    _rule("Slack", r"Slack", "#4a154b"),
    _rule("Python", r"python", "#3776ab"),
    # Excluded when the last "node" is followed by "code" (editor extension hosts)
    _rule("Node.js", r"node", "#339933", exclude=r"node(?!.*node).*code"),
    _rule("Next.js", r"next-server", "#000000"),
    _rule("WhatsApp", r"WhatsApp", "#25d366"),
    _rule("Obsidian", r"Obsidian", "#7c3aed"),
    _rule("Docker", r"docker|containerd", "#2496ed"),
)


def classify(command: str, rules: Sequence[Rule] = DEFAULT_RULES) -> Rule | None:
    """Return the first rule matching the command, or None if unclassified."""
    for rule in rules:
        if rule.matches(command):
            return rule
    return None


def build_application_groups(
    records: Iterable[ProcessRecord],
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> list[ApplicationGroup]:
    """
    Sum resident memory per application.

    Memory is accumulated in kilobytes and rounded once per group. Groups
    nothing matched are left out. Sorted by memory, largest first.
    """
    totals: dict[str, list[int]] = {}  # name -> [rss_kb, count]
    colors: dict[str, str] = {}
    for record in records:
        rule = classify(record.command_line, rules)
        if rule is None:
            continue
        current = totals.setdefault(rule.name, [0, 0])
        current[0] += record.rss_kb
        current[1] += 1
        colors[rule.name] = rule.color

    groups = [
        ApplicationGroup(
            name=name,
            memory_mb=kb_to_mb(rss_kb),
            process_count=count,
            color=colors[name],
        )
        for name, (rss_kb, count) in totals.items()
    ]
    return sorted(groups, key=lambda g: g.memory_mb, reverse=True)
