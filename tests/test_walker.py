"""Tests for the navigation state machine."""

import asyncio

import pytest

from apkfetch.config import ResolverConfig
from apkfetch.errors import ResolutionFailed
from apkfetch.models import WalkPhase
from apkfetch.walker import walk
from tests.fakes import FakeSession

START = "https://www.apkmirror.com/apk/foo/"
HOP = "https://www.apkmirror.com/apk/foo/download/"
DIRECT_123 = "https://www.apkmirror.com/wp-content/themes/APKMirror/download.php?id=123"
CHALLENGE = (
    "<html><head><title>Just a moment...</title></head>"
    "<body>This site cannot be loaded without JavaScript and cookies enabled.</body></html>"
)


def _config(**overrides) -> ResolverConfig:
    return ResolverConfig(settle_delay=0, **overrides)


def test_resolves_after_one_hop_with_two_loads() -> None:
    session = FakeSession(
        {
            START: '<a href="/apk/foo/download/">Download APK</a>',
            HOP: '<a href="/wp-content/themes/APKMirror/download.php?id=123">here</a>',
        }
    )

    result = asyncio.run(walk(session, START, _config()))

    assert result.direct_url == DIRECT_123
    assert result.referer == HOP
    assert session.loads == [START, HOP]
    assert result.state.phase is WalkPhase.RESOLVED
    assert result.state.visited == {START, HOP}


def test_fails_without_candidates_or_challenge() -> None:
    session = FakeSession(
        {START: "<title>Widget</title><a href='https://example.com/about'>about</a>"},
        status=200,
    )

    with pytest.raises(ResolutionFailed) as excinfo:
        asyncio.run(walk(session, START, _config()))

    error = excinfo.value
    assert error.challenge_seen is False
    assert error.status == 200
    assert error.title == "Widget"
    assert error.url == START
    assert session.loads == [START]


def test_self_linking_intermediate_page_terminates() -> None:
    session = FakeSession({HOP: '<a href="/apk/foo/download/">again</a>'})

    with pytest.raises(ResolutionFailed):
        asyncio.run(walk(session, HOP, _config()))
    assert session.loads == [HOP]


def test_waits_out_challenge_without_reloading() -> None:
    resolved_page = f'<a href="{DIRECT_123}">download</a>'
    session = FakeSession({START: [CHALLENGE, CHALLENGE, resolved_page]})

    result = asyncio.run(walk(session, START, _config()))

    assert result.direct_url == DIRECT_123
    assert session.loads == [START]
    assert session.settles == 3
    assert result.state.challenge_seen is True
    assert result.state.step_count == 3


def test_persistent_challenge_hits_the_step_cap() -> None:
    session = FakeSession({START: CHALLENGE})

    with pytest.raises(ResolutionFailed) as excinfo:
        asyncio.run(walk(session, START, _config(max_steps=4)))

    assert excinfo.value.challenge_seen is True
    assert session.loads == [START]
    assert session.snapshots == 4


def test_challenge_seen_earlier_keeps_walk_alive() -> None:
    session = FakeSession(
        {
            START: [CHALLENGE, '<a href="/apk/foo/download/">hop</a>'],
            HOP: ["<p>rendering</p>", f'<a href="{DIRECT_123}">go</a>'],
        }
    )

    result = asyncio.run(walk(session, START, _config()))

    assert result.direct_url == DIRECT_123
    assert session.loads == [START, HOP]


def test_navigation_timeout_is_tolerated() -> None:
    session = FakeSession(
        {START: f'<a href="{DIRECT_123}">download</a>'},
        timeouts=[START],
    )

    result = asyncio.run(walk(session, START, _config()))

    assert result.direct_url == DIRECT_123
    assert result.state.last_status is None


def test_direct_source_url_skips_navigation() -> None:
    session = FakeSession({})

    result = asyncio.run(walk(session, DIRECT_123, _config()))

    assert result.direct_url == DIRECT_123
    assert result.referer == DIRECT_123
    assert session.loads == []


def test_redirected_page_is_not_loaded_again() -> None:
    landing = "https://www.apkmirror.com/apk/foo/widget-download/"
    final = "https://www.apkmirror.com/apk/foo/widget-1-0-android-apk-download/"
    session = FakeSession(
        {final: f'<a href="{final}">self</a><p>no download yet</p>'},
        redirects={landing: final},
    )

    with pytest.raises(ResolutionFailed) as excinfo:
        asyncio.run(walk(session, landing, _config()))

    assert session.loads == [landing]
    assert excinfo.value.url == final
