"""
Unit tests for the LLM ranking stage and the Gemini judge.

All tests use stubs/mocks to avoid making API calls.
"""

import asyncio
import json
from unittest.mock import Mock, patch

import pytest

from cascade_rank.errors import InvalidArgumentError, JudgeResponseError
from cascade_rank.reranking import gemini as gemini_module
from cascade_rank.reranking.gemini import GeminiJudge
from cascade_rank.reranking.llm import Judgement, LLMRanker, RelevanceJudge
from stubs import StubJudge

pytestmark = pytest.mark.unit


async def scores_of(ranker, query, documents):
    return [(doc, score) async for doc, score in ranker.score(query, documents)]


class TestLLMRanker:
    """Test judge delegation, degradation and ordering"""

    def test_requires_judge(self):
        with pytest.raises(InvalidArgumentError):
            LLMRanker(None)

    def test_rejects_bad_concurrency(self):
        with pytest.raises(InvalidArgumentError):
            LLMRanker(StubJudge(), max_concurrency=0)

    @pytest.mark.asyncio
    async def test_scores_each_document(self):
        judge = StubJudge({"paris": 0.9, "python": 0.1})
        results = await scores_of(LLMRanker(judge), "capital of France", ["paris", "python"])

        assert results == [("paris", 0.9), ("python", 0.1)]
        assert judge.calls == [("capital of France", "paris"), ("capital of France", "python")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "  ", None])
    async def test_empty_query_skips_judge(self, query):
        judge = StubJudge()
        results = await scores_of(LLMRanker(judge), query, ["a", "b", "c"])
        assert results == [("a", 0.0), ("b", 0.0), ("c", 0.0)]
        assert judge.calls == []

    @pytest.mark.asyncio
    async def test_empty_document_scores_zero(self):
        judge = StubJudge(default=0.8)
        results = await scores_of(LLMRanker(judge), "q", ["", "   ", "text"])
        assert results == [("", 0.0), ("   ", 0.0), ("text", 0.8)]
        assert len(judge.calls) == 1

    @pytest.mark.asyncio
    async def test_judge_failure_degrades_to_zero(self):
        judge = StubJudge({"bad": RuntimeError("service unavailable"), "bad json": JudgeResponseError("x")})
        results = await scores_of(LLMRanker(judge), "q", ["good", "bad", "bad json", "also good"])
        assert results == [("good", 0.5), ("bad", 0.0), ("bad json", 0.0), ("also good", 0.5)]

    @pytest.mark.asyncio
    async def test_non_text_record_scores_zero(self):
        """Records whose accessor returns a non-str score 0 without stopping the stream"""
        judge = StubJudge(default=0.7)
        records = [1, "text", 2]

        results = [r async for r in LLMRanker(judge).score_records("q", records, lambda r: r)]

        assert results == [(1, 0.0), ("text", 0.7), (2, 0.0)]
        assert judge.calls == [("q", "text")]

    @pytest.mark.asyncio
    async def test_out_of_range_scores_clamped(self):
        judge = StubJudge({"high": 7.5, "low": -1.0, "nan": float("nan")})
        results = dict(await scores_of(LLMRanker(judge), "q", ["high", "low", "nan"]))
        assert results == {"high": 1.0, "low": 0.0, "nan": 0.0}

    @pytest.mark.asyncio
    async def test_judgements_carry_explanations(self):
        judge = StubJudge({"boom": RuntimeError("timeout")})
        ranker = LLMRanker(judge)
        judged = [pair async for pair in ranker.judgements("q", ["fine", "boom"])]

        assert judged[0][1].explanation.startswith("stub verdict")
        assert judged[1][1] == Judgement(0.0, "Judge error: timeout")

    @pytest.mark.asyncio
    async def test_concurrent_judging_keeps_input_order(self):
        class SlowFirstJudge(RelevanceJudge):
            def __init__(self):
                self.active = 0
                self.peak = 0

            async def judge(self, query, document):
                self.active += 1
                self.peak = max(self.peak, self.active)
                # Earlier documents finish last
                await asyncio.sleep(0.01 * (10 - int(document)))
                self.active -= 1
                return Judgement(int(document) / 10.0)

        judge = SlowFirstJudge()
        docs = [str(i) for i in range(7)]
        results = await scores_of(LLMRanker(judge, max_concurrency=3), "q", docs)

        assert [doc for doc, _ in results] == docs
        assert [score for _, score in results] == [i / 10.0 for i in range(7)]
        assert judge.peak == 3

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        class HangingJudge(RelevanceJudge):
            async def judge(self, query, document):
                await asyncio.sleep(3600)

        async def consume():
            return await scores_of(LLMRanker(HangingJudge()), "q", ["a", "b"])

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_rank(self):
        judge = StubJudge({"a": 0.2, "b": 0.9, "c": 0.5})
        ranked = [r async for r in LLMRanker(judge).rank("q", ["a", "b", "c"], top_n=2)]
        assert ranked == [("b", 0.9), ("c", 0.5)]

    def test_model_info_and_close(self):
        judge = StubJudge()
        judge.close = Mock()
        ranker = LLMRanker(judge, max_concurrency=4)
        info = ranker.get_model_info()
        assert info["type"] == "llm"
        assert info["max_concurrency"] == 4
        assert info["judge"]["name"] == "StubJudge"
        ranker.close()
        judge.close.assert_called_once()


def gemini_reply(payload) -> Mock:
    response = Mock()
    response.text = payload if isinstance(payload, str) else json.dumps(payload)
    return response


class TestGeminiJudge:
    """Test Gemini judge with a mocked client"""

    def test_initialization_without_project(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        monkeypatch.delenv("GCP_PROJECT_ID", raising=False)
        with pytest.raises(ValueError, match="GCP project ID required"):
            GeminiJudge()

    @patch("cascade_rank.reranking.gemini.genai.Client")
    def test_initialization_creates_vertex_client(self, mock_client_class):
        judge = GeminiJudge(model_name="gemini-2.5-flash", project_id="proj", location="europe-west1")
        mock_client_class.assert_called_once_with(vertexai=True, project="proj", location="europe-west1")
        info = judge.get_model_info()
        assert info["name"] == "gemini-2.5-flash"
        assert info["type"] == "gemini-llm"
        assert info["project"] == "proj"

    @pytest.mark.asyncio
    async def test_judge_parses_reply(self):
        client = Mock()
        client.models.generate_content.return_value = gemini_reply(
            {"relevance_score": 0.85, "explanation": "Directly answers the query"}
        )
        judge = GeminiJudge(client=client)

        judgement = await judge.judge("capital of France", "Paris is the capital of France.")

        assert judgement == Judgement(0.85, "Directly answers the query")
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert "capital of France" in kwargs["contents"]
        assert "Paris is the capital of France." in kwargs["contents"]

    @pytest.mark.parametrize("text", [
        "not json at all",
        "[1, 2, 3]",
        '{"explanation": "no score"}',
        '{"relevance_score": "high"}',
        '{"relevance_score": true}',
        '{"relevance_score": NaN}',
    ])
    def test_malformed_replies_raise(self, text):
        with pytest.raises(JudgeResponseError):
            GeminiJudge.parse_response(text)

    def test_parse_clamps_and_unwraps(self):
        assert GeminiJudge.parse_response('{"relevance_score": 1.7}').score == 1.0
        assert GeminiJudge.parse_response('[{"relevance_score": 0.3, "explanation": "ok"}]') == Judgement(0.3, "ok")
        assert GeminiJudge.parse_response('{"relevance_score": "0.4"}').score == 0.4

    @pytest.mark.asyncio
    async def test_retries_retriable_errors(self, monkeypatch):
        class RateLimited(Exception):
            code = 429

        client = Mock()
        client.models.generate_content.side_effect = [
            RateLimited("slow down"),
            gemini_reply({"relevance_score": 0.6, "explanation": "ok"}),
        ]
        monkeypatch.setattr(gemini_module, "RETRY_INITIAL_DELAY", 0.0)

        judgement = await GeminiJudge(client=client).judge("q", "doc")

        assert judgement.score == 0.6
        assert client.models.generate_content.call_count == 2

    @pytest.mark.asyncio
    async def test_non_retriable_error_raises(self):
        client = Mock()
        client.models.generate_content.side_effect = PermissionError("denied")

        with pytest.raises(PermissionError):
            await GeminiJudge(client=client).judge("q", "doc")
        assert client.models.generate_content.call_count == 1

    @pytest.mark.asyncio
    async def test_failures_degrade_inside_llm_ranker(self):
        client = Mock()
        client.models.generate_content.side_effect = [
            gemini_reply({"relevance_score": 0.9, "explanation": "good"}),
            gemini_reply("garbage"),
        ]
        ranker = LLMRanker(GeminiJudge(client=client))

        results = await scores_of(ranker, "q", ["first", "second"])

        assert results == [("first", 0.9), ("second", 0.0)]
