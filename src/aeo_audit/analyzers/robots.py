"""robots.txt parsing and AI crawler access checks."""

from dataclasses import dataclass, field

# Major AI crawlers whose access is audited
AI_BOTS = (
    "GPTBot",
    "Google-Extended",
    "ChatGPT-User",
    "anthropic-ai",
    "Claude-Web",
    "PerplexityBot",
    "CCBot",
)


@dataclass
class RobotsGroup:
    user_agents: list[str] = field(default_factory=list)
    allow: list[str] = field(default_factory=list)
    disallow: list[str] = field(default_factory=list)


@dataclass
class RobotsRules:
    """Parsed robots.txt: rule groups keyed by lowercased user agent."""

    groups: dict[str, RobotsGroup] = field(default_factory=dict)
    sitemaps: list[str] = field(default_factory=list)


def parse_robots(content: str) -> RobotsRules:
    """
    Parse robots.txt into per-agent groups.

    Consecutive User-agent lines share the rules that follow them. Groups
    that name the same agent more than once are merged. Comments and blank
    lines are ignored. Paths are kept verbatim.
    """
    rules = RobotsRules()
    agents: list[str] = []
    collecting_agents = False

    for raw_line in content.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        directive, value = (part.strip() for part in line.split(":", 1))
        directive = directive.lower()

        if directive == "user-agent":
            if not collecting_agents:
                agents = []
            agent = value.lower()
            agents.append(agent)
            rules.groups.setdefault(agent, RobotsGroup(user_agents=[agent]))
            collecting_agents = True
            continue

        collecting_agents = False
        if directive == "sitemap":
            rules.sitemaps.append(value)
        elif not value or directive not in ("allow", "disallow"):
            continue
        for agent in agents:
            group = rules.groups[agent]
            (group.allow if directive == "allow" else group.disallow).append(value)

    return rules


def is_bot_allowed(rules: RobotsRules, bot: str) -> bool:
    """
    Decide whether a crawler may fetch the site root.

    A group naming the bot overrides the wildcard group entirely. Within
    the applicable group the bot is blocked by `Disallow: /` unless
    `Allow: /` is also present. With no applicable group it is allowed.
    """
    group = rules.groups.get(bot.lower()) or rules.groups.get("*")
    if group is None:
        return True
    return not ("/" in group.disallow and "/" not in group.allow)


def blocked_bots(rules: RobotsRules, bots: tuple[str, ...] = AI_BOTS) -> list[str]:
    return [bot for bot in bots if not is_bot_allowed(rules, bot)]
