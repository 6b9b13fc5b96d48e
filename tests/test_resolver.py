"""
Tiered resolver tests.

All tests run against the in-process fake backend; no network.
"""

import asyncio

import httpx
from _fake_backend import FakeBackend, make_pipeline

from lark_assist.commands.resolver import NO_CONNECTION_MESSAGE, first_success
from lark_assist.commands.types import CommandAction, ResolutionMiss, ResolutionTier, ResolvedCommand


def _resolve(backend: FakeBackend, transcript: str):
    pipeline = make_pipeline(backend)
    return asyncio.run(pipeline.resolver.resolve(transcript)), pipeline


class TestTierPrecedence:
    def test_offline_match_makes_no_network_calls(self):
        backend = FakeBackend()
        resolved, _ = _resolve(backend, "read miranda rights in spanish")

        assert isinstance(resolved, ResolvedCommand)
        assert resolved.resolution_tier == ResolutionTier.OFFLINE
        assert resolved.action == CommandAction.MIRANDA
        assert resolved.parameters == {"language": "spanish"}
        assert backend.network_calls == 0

    def test_local_match_makes_no_network_calls(self):
        backend = FakeBackend()
        resolved, _ = _resolve(backend, "what is RS 14:67")

        assert resolved.resolution_tier == ResolutionTier.LOCAL
        assert resolved.action == CommandAction.STATUTE
        assert resolved.parameters == {"statute": "14:67"}
        assert backend.network_calls == 0

    def test_remote_tier_used_when_local_tiers_miss(self):
        backend = FakeBackend()
        resolved, _ = _resolve(backend, "what are the rules for a traffic stop")

        assert resolved.resolution_tier == ResolutionTier.REMOTE
        assert resolved.action == CommandAction.GENERAL_QUERY
        assert resolved.prefetched_result == "Remote answer to: what are the rules for a traffic stop"
        assert backend.count("/health") == 1
        assert backend.count("/openai/process-command") == 1


class TestOfflineDegradation:
    def test_no_remote_call_when_offline(self):
        backend = FakeBackend(healthy=False)
        resolved, pipeline = _resolve(backend, "what are the rules for a traffic stop")

        assert isinstance(resolved, ResolutionMiss)
        assert resolved.action == CommandAction.UNKNOWN
        assert resolved.error == NO_CONNECTION_MESSAGE
        assert backend.count("/openai/process-command") == 0
        assert backend.count("/health") == 3
        assert pipeline.state.offline is True


class TestRemoteFailures:
    def test_unparseable_interpretation_downgrades_to_general_query(self):
        backend = FakeBackend()
        backend.routes["/openai/process-command"] = lambda body: httpx.Response(200, text="not json at all")
        resolved, _ = _resolve(backend, "explain the implied consent law")

        assert isinstance(resolved, ResolvedCommand)
        assert resolved.action == CommandAction.GENERAL_QUERY
        assert resolved.parameters == {"query": "explain the implied consent law"}
        assert resolved.prefetched_result is None

    def test_interpretation_without_action_downgrades(self):
        backend = FakeBackend()
        backend.routes["/openai/process-command"] = lambda body: {"success": True, "command": "x"}
        resolved, _ = _resolve(backend, "explain the implied consent law")

        assert resolved.action == CommandAction.GENERAL_QUERY

    def test_server_error_becomes_miss_with_user_message(self):
        backend = FakeBackend()
        backend.routes["/openai/process-command"] = lambda body: httpx.Response(500, json={"success": False})
        resolved, _ = _resolve(backend, "explain the implied consent law")

        assert isinstance(resolved, ResolutionMiss)
        assert resolved.action == CommandAction.GENERAL_QUERY
        assert resolved.error == "Server error. Please try again later."
        assert resolved.parameters == {"query": "explain the implied consent law"}

    def test_unrecognized_remote_action_kept_for_dispatch(self):
        backend = FakeBackend()
        backend.routes["/openai/process-command"] = lambda body: {
            "success": True,
            "command": body["transcript"],
            "action": "translate",
            "parameters": {"language": "french", "statute": None},
        }
        resolved, _ = _resolve(backend, "explain the implied consent law")

        assert resolved.action == "translate"
        assert resolved.parameters == {"language": "french"}


class TestFirstSuccess:
    def test_stops_at_first_success(self):
        calls = []

        def tier(name, outcome):
            async def _resolve(transcript):
                calls.append(name)
                return outcome
            return _resolve

        hit = ResolvedCommand(command="t", action=CommandAction.TACTICAL)
        miss = ResolutionMiss(command="t", error="no")
        outcome = asyncio.run(first_success("t", [tier("a", miss), tier("b", hit), tier("c", miss)]))

        assert outcome is hit
        assert calls == ["a", "b"]

    def test_returns_last_miss(self):
        async def miss_a(t):
            return ResolutionMiss(command=t, error="a")

        async def miss_b(t):
            return ResolutionMiss(command=t, error="b")

        outcome = asyncio.run(first_success("t", [miss_a, miss_b]))
        assert isinstance(outcome, ResolutionMiss)
        assert outcome.error == "b"
