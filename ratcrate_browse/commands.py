from __future__ import annotations

from dataclasses import dataclass

from ratcrate_browse.catalog import DEFAULT_LIMIT

SEARCH_PREFIX = "search "


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class ShowAll:
    pass


@dataclass(frozen=True)
class ShowCore:
    pass


@dataclass(frozen=True)
class ShowCommunity:
    pass


@dataclass(frozen=True)
class Top:
    n: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class Recent:
    n: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class New:
    n: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class Search:
    query: str


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class Invalid:
    reason: str


Command = (
    Quit
    | ShowAll
    | ShowCore
    | ShowCommunity
    | Top
    | Recent
    | New
    | Search
    | Help
    | Refresh
    | Invalid
)

SimpleCommand = Quit | ShowAll | ShowCore | ShowCommunity | Help | Refresh
LimitCommand = Top | Recent | New

_SIMPLE_COMMANDS: dict[str, type[SimpleCommand]] = {
    "q": Quit,
    "quit": Quit,
    "all": ShowAll,
    "core": ShowCore,
    "community": ShowCommunity,
    "help": Help,
    "?": Help,
    "refresh": Refresh,
}

_LIMIT_COMMANDS: dict[str, type[LimitCommand]] = {
    "top": Top,
    "recent": Recent,
    "new": New,
}


def parse_command(text: str) -> Command:
    """Turn a typed command line (without the leading ``:``) into a Command.

    The first whitespace-delimited token picks the command. ``top``, ``recent``
    and ``new`` accept one optional non-negative integer; ``search`` takes the
    rest of the line verbatim. Anything that does not fit yields ``Invalid``.
    """
    stripped = text.strip()
    if not stripped:
        return Invalid("empty command")

    keyword, *rest = stripped.split(maxsplit=1)
    remainder = rest[0] if rest else ""

    if keyword == "search":
        if not remainder:
            return Invalid("usage: search <query>")
        return Search(remainder)

    simple = _SIMPLE_COMMANDS.get(keyword)
    if simple is not None:
        if remainder:
            return Invalid(f"{keyword} takes no arguments")
        return simple()

    limited = _LIMIT_COMMANDS.get(keyword)
    if limited is not None:
        return _parse_limit(keyword, limited, remainder)

    return Invalid("unknown command")


def parse_search_shortcut(query: str) -> Command:
    return parse_command(SEARCH_PREFIX + query)


def _parse_limit(
    keyword: str, command: type[LimitCommand], argument: str
) -> Command:
    if not argument:
        return command(DEFAULT_LIMIT)
    if len(argument.split()) > 1:
        return Invalid(f"usage: {keyword} [N]")
    try:
        n = int(argument)
    except ValueError:
        return Invalid(f"{keyword}: expected a number, got {argument!r}")
    if n < 0:
        return Invalid(f"{keyword}: N must not be negative")
    return command(n)
