"""Tests for the client view flows: analyze, refresh and clear."""

import asyncio
import logging

import httpx

from conftest import EDU_SCORE_BODY, LOGS_BODY, TOXICITY_BODY
from text_analysis.view import ANALYSIS_ERROR_MESSAGE, ClientView


def test_initial_load_fetches_logs_once(service, view: ClientView) -> None:
    asyncio.run(view.load())

    assert service.calls == [("GET", "/logs")]
    assert view.logs == LOGS_BODY


def test_analyze_stores_both_results_and_refreshes_logs(service, view: ClientView) -> None:
    accepted = asyncio.run(view.analyze("hello there"))

    assert accepted is True
    assert view.toxicity_result == TOXICITY_BODY
    assert view.edu_score_result == EDU_SCORE_BODY
    assert view.error is None
    assert service.calls == [("POST", "/toxicity"), ("POST", "/edu-score"), ("GET", "/logs")]
    assert service.bodies[:2] == [{"text": "hello there"}, {"text": "hello there"}]
    assert view.logs == LOGS_BODY


def test_analyze_forwards_empty_text(service, view: ClientView) -> None:
    asyncio.run(view.analyze(""))

    assert service.bodies[0] == {"text": ""}
    assert view.toxicity_result == TOXICITY_BODY


def test_analyze_without_argument_uses_current_text(service, view: ClientView) -> None:
    view.text = "kept from last time"
    asyncio.run(view.analyze())

    assert service.bodies[0] == {"text": "kept from last time"}


def test_toxicity_failure_skips_edu_score(service, view: ClientView) -> None:
    service.fail("POST", "/toxicity")

    asyncio.run(view.analyze("hello"))

    assert view.error == ANALYSIS_ERROR_MESSAGE
    assert view.toxicity_result is None
    assert view.edu_score_result is None
    assert service.count("POST", "/edu-score") == 0
    assert service.count("GET", "/logs") == 0


def test_edu_score_failure_keeps_toxicity_result(service, view: ClientView) -> None:
    service.fail("POST", "/edu-score", status_code=422)

    asyncio.run(view.analyze("hello"))

    assert view.toxicity_result == TOXICITY_BODY
    assert view.edu_score_result is None
    assert view.error == ANALYSIS_ERROR_MESSAGE
    assert service.count("GET", "/logs") == 0


def test_network_error_collapses_to_generic_message(service, view: ClientView, caplog) -> None:
    service.unreachable("POST", "/toxicity")

    with caplog.at_level(logging.ERROR, logger="text_analysis.view"):
        asyncio.run(view.analyze("hello"))

    assert view.error == ANALYSIS_ERROR_MESSAGE
    assert "Could not connect to the scoring service" in caplog.text


def test_new_analysis_clears_previous_results_and_error(service, view: ClientView) -> None:
    service.fail("POST", "/edu-score")
    asyncio.run(view.analyze("first"))
    assert view.error is not None

    service.fail("POST", "/toxicity")
    asyncio.run(view.analyze("second"))

    assert view.toxicity_result is None
    assert view.edu_score_result is None
    assert view.error == ANALYSIS_ERROR_MESSAGE


def test_successful_analysis_clears_previous_error(service, view: ClientView) -> None:
    view.error = ANALYSIS_ERROR_MESSAGE

    asyncio.run(view.analyze("hello"))

    assert view.error is None


def test_refresh_failure_keeps_logs_and_error_state(service, view: ClientView, caplog) -> None:
    view.logs = [{"id": 9, "text": "old", "result_type": "Education", "score": 1.0}]
    service.fail("GET", "/logs")

    with caplog.at_level(logging.ERROR, logger="text_analysis.view"):
        refreshed = asyncio.run(view.refresh_logs())

    assert refreshed is False
    assert view.logs == [{"id": 9, "text": "old", "result_type": "Education", "score": 1.0}]
    assert view.error is None
    assert "Failed to fetch logs" in caplog.text


def test_refresh_rejects_non_list_body(service, view: ClientView) -> None:
    service.handlers[("GET", "/logs")] = lambda request: httpx.Response(200, json={"logs": []})
    view.logs = list(LOGS_BODY)

    assert asyncio.run(view.refresh_logs()) is False
    assert view.logs == LOGS_BODY


def test_logs_keep_server_order(service, view: ClientView) -> None:
    service.logs = [
        {"id": 7, "text": "b", "result_type": "Education", "score": 3},
        {"id": 2, "text": "a", "result_type": "Toxicity", "score": 0.1},
    ]

    asyncio.run(view.refresh_logs())

    assert [log["id"] for log in view.logs] == [7, 2]


def test_clear_logs_empties_immediately(service, view: ClientView) -> None:
    asyncio.run(view.load())
    assert view.logs

    cleared = asyncio.run(view.clear_logs())

    assert cleared is True
    assert view.logs == []
    assert service.calls == [("GET", "/logs"), ("DELETE", "/clear-logs")]


def test_clear_logs_failure_keeps_logs(service, view: ClientView) -> None:
    asyncio.run(view.load())
    service.unreachable("DELETE", "/clear-logs")

    cleared = asyncio.run(view.clear_logs())

    assert cleared is False
    assert view.logs == LOGS_BODY
    assert view.error is None


def test_overlapping_analyze_is_ignored(service, view: ClientView) -> None:
    async def scenario():
        started = asyncio.Event()
        gate = asyncio.Event()

        async def slow_toxicity(request):
            started.set()
            await gate.wait()
            return httpx.Response(200, json=TOXICITY_BODY)

        service.handlers[("POST", "/toxicity")] = slow_toxicity
        first = asyncio.create_task(view.analyze("one"))
        await started.wait()
        assert view.analyzing is True
        second = await view.analyze("two")
        gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert service.count("POST", "/toxicity") == 1
    assert view.text == "one"
    assert view.analyzing is False
    assert view.edu_score_result == EDU_SCORE_BODY


def test_analyze_flag_resets_after_failure(service, view: ClientView) -> None:
    service.fail("POST", "/toxicity")
    asyncio.run(view.analyze("one"))

    assert view.analyzing is False
    assert asyncio.run(view.analyze("two")) is True


def test_stale_fetch_does_not_undo_clear(service, view: ClientView) -> None:
    async def scenario():
        started = asyncio.Event()
        gate = asyncio.Event()

        async def slow_logs(request):
            started.set()
            await gate.wait()
            return httpx.Response(200, json=LOGS_BODY)

        service.handlers[("GET", "/logs")] = slow_logs
        fetch = asyncio.create_task(view.refresh_logs())
        await started.wait()
        cleared = await view.clear_logs()
        gate.set()
        return cleared, await fetch

    cleared, refreshed = asyncio.run(scenario())

    assert cleared is True
    assert refreshed is False
    assert view.logs == []


def test_latest_fetch_wins(service, view: ClientView) -> None:
    older = [{"id": 1, "text": "old", "result_type": "Toxicity", "score": 0.5}]
    newer = [{"id": 2, "text": "new", "result_type": "Education", "score": 4}]

    async def scenario():
        started = asyncio.Event()
        gate = asyncio.Event()
        answers = [older, newer]

        async def logs(request):
            body = answers.pop(0)
            if body is older:
                started.set()
                await gate.wait()
            return httpx.Response(200, json=body)

        service.handlers[("GET", "/logs")] = logs
        first = asyncio.create_task(view.refresh_logs())
        await started.wait()
        second = await view.refresh_logs()
        gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (False, True)
    assert view.logs == newer


def test_edu_score_body_with_wrong_shape_is_an_analysis_failure(service, view: ClientView) -> None:
    service.handlers[("POST", "/edu-score")] = lambda request: httpx.Response(
        200, json={"text": "x", "score": "high", "int_score": 2}
    )

    asyncio.run(view.analyze("hello"))

    assert view.error == ANALYSIS_ERROR_MESSAGE
    assert view.toxicity_result == TOXICITY_BODY
    assert view.edu_score_result is None
    assert service.count("GET", "/logs") == 0


def test_toxicity_body_with_wrong_shape_skips_edu_score(service, view: ClientView) -> None:
    service.handlers[("POST", "/toxicity")] = lambda request: httpx.Response(
        200, json={"text": "x", "predicted_class": "Toxic", "score": 0.9, "probabilities": [0.1, 0.9]}
    )

    asyncio.run(view.analyze("hello"))

    assert view.error == ANALYSIS_ERROR_MESSAGE
    assert view.toxicity_result is None
    assert service.count("POST", "/edu-score") == 0


def test_logs_with_non_object_entries_are_rejected(service, view: ClientView) -> None:
    service.logs = [LOGS_BODY[0], "not an entry"]
    view.logs = list(LOGS_BODY)

    assert asyncio.run(view.refresh_logs()) is False
    assert view.logs == LOGS_BODY
