"""
Property-based tests for route parsing and matching.

Built URLs route back to their entry, matching ignores case, and parse
results always index into the original path.
"""
import pytest
from hypothesis import assume, given, strategies as st, settings, HealthCheck

from odata_mcp.core.errors import RouteConflict
from odata_mcp.routing.entry import RouteEntry
from odata_mcp.routing.matcher import RouteMatcher
from odata_mcp.routing.parser import RouteCommand, parse_route
from odata_mcp.routing.registry import RouteRegistry


# Path segments that are never the literal 'mcp' segment
segment_strategy = st.from_regex(r'[A-Za-z0-9_-]{1,10}', fullmatch=True).filter(
    lambda segment: segment.lower() != 'mcp'
)

prefix_strategy = st.lists(segment_strategy, min_size=1, max_size=3).map('/'.join)

tool_name_strategy = st.from_regex(r'[A-Za-z][A-Za-z0-9_]{0,20}', fullmatch=True).filter(
    lambda name: name.lower() != 'execute'
)


@st.composite
def distinct_prefixes(draw: st.DrawFn) -> list[str]:
    """Generate prefixes that differ case-insensitively."""
    prefixes = draw(st.lists(prefix_strategy, min_size=1, max_size=6))
    unique = list({prefix.lower(): prefix for prefix in prefixes}.values())
    return unique


def _swap_case(text: str, mask: list[bool]) -> str:
    return ''.join(
        char.swapcase() if flip else char
        for char, flip in zip(text, mask + [False] * len(text))
    )


@pytest.mark.property
@given(prefixes=distinct_prefixes(), data=st.data())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_built_urls_route_back(prefixes: list[str], data) -> None:
    """Every URL built for a registered prefix resolves to that entry and command."""
    matcher = RouteMatcher([RouteEntry(f"ns{index}", prefix) for index, prefix in enumerate(prefixes)])

    for entry in matcher.entries():
        for command in (RouteCommand.INFO, RouteCommand.TOOLS, RouteCommand.TOOLS_EXECUTE):
            match = matcher.try_match(matcher.build_url(entry.source_prefix, command))
            assert match.entry == entry
            assert match.command is command

        tool = data.draw(tool_name_strategy)
        match = matcher.try_match(matcher.build_url(entry.source_prefix, RouteCommand.TOOL_INFO, tool))
        assert match.command is RouteCommand.TOOL_INFO
        assert match.tool_name == tool


@pytest.mark.property
@given(prefix=prefix_strategy, data=st.data())
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_matching_ignores_case(prefix: str, data) -> None:
    """Changing the case of any character in the path does not change the match."""
    matcher = RouteMatcher([RouteEntry("catalog", prefix)])
    path = f"/{prefix}/mcp/tools"
    mask = data.draw(st.lists(st.booleans(), min_size=len(path), max_size=len(path)))

    match = matcher.try_match(_swap_case(path, mask))

    assert match is not None
    assert match.entry.name == "catalog"
    assert match.command is RouteCommand.TOOLS


@pytest.mark.property
@given(prefix=prefix_strategy, other=prefix_strategy)
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_unregistered_prefix_does_not_match(prefix: str, other: str) -> None:
    """A prefix that is not registered never matches."""
    assume(prefix.lower() != other.lower())
    matcher = RouteMatcher([RouteEntry("catalog", prefix)])

    assert matcher.try_match(f"/{other}/mcp/tools") is None


@pytest.mark.property
@given(
    segments=st.lists(st.from_regex(r'[a-z]{0,6}', fullmatch=True), max_size=6),
    leading=st.booleans()
)
@settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
def test_property_parse_slices_index_the_source(segments: list[str], leading: bool) -> None:
    """Parsed slices are ranges of the original path without edge separators."""
    path = ('/' if leading else '') + '/'.join(segments)

    parts = parse_route(path)

    if 'mcp' not in segments:
        assert parts is None
        return

    assert parts.source is path
    for piece in (parts.namespace, parts.command):
        assert piece.source is path
        assert 0 <= piece.start <= piece.stop <= len(path)
        text = piece.text()
        assert not text.startswith('/')
        assert not text.endswith('/')
    assert parts.namespace.stop <= parts.command.start


@pytest.mark.property
@given(prefix=prefix_strategy, name=segment_strategy)
@settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
def test_property_duplicate_explicit_prefix_conflicts(prefix: str, name: str) -> None:
    """Registering the same prefix twice explicitly always conflicts."""
    registry = RouteRegistry()
    registry.register("first", prefix)
    assume(name.lower() != "first")

    with pytest.raises(RouteConflict):
        registry.register(name, '/' + prefix.upper() + '/')

    assert len(registry) == 1
