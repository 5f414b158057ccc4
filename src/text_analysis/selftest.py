"""Contract check: does the scoring service answer in the expected shape?

The check sends a few sample texts through both scoring endpoints and fetches
the logs once. It treats the service as a black box and only looks at the JSON
it returns. Note that every scored sample adds entries to the service's log
history, so the check is only run on request.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Tuple

import httpx

from text_analysis.scoring import (
    ScoringClient,
    ServiceSchemaError,
    check_edu_score,
    check_toxicity,
    describe_failure,
    is_number,
)


SELFTEST_TEXTS: List[str] = [
    "Photosynthesis converts light energy into chemical energy stored in glucose.",
    "You are an idiot and nobody wants you here.",
    "",
]

RESULT_TYPES = ("Toxicity", "Education")


def check_logs(logs: List[Dict[str, Any]]) -> List[str]:
    problems = []
    for i, log in enumerate(logs):
        if not isinstance(log, dict):
            problems.append(f"entry {i} should be an object")
            continue
        if not isinstance(log.get("id"), int):
            problems.append(f"entry {i}: 'id' should be an integer")
        if not isinstance(log.get("text"), str):
            problems.append(f"entry {i}: 'text' should be a string")
        if log.get("result_type") not in RESULT_TYPES:
            problems.append(f"entry {i}: 'result_type' should be one of {list(RESULT_TYPES)}")
        score = log.get("score")
        if score is not None and not is_number(score):
            problems.append(f"entry {i}: 'score' should be a number or null")
    return problems


async def _run_one(name: str, call: Callable[[], Any], check: Callable[[Any], List[str]],
                   client: ScoringClient) -> Dict[str, Any]:
    t0 = time.perf_counter()
    try:
        data = await call()
    except ServiceSchemaError as ex:
        return {
            "name": name,
            "ok": False,
            "problems": ex.problems,
            "latency_ms": (time.perf_counter() - t0) * 1000.0,
        }
    except (httpx.HTTPError, ValueError) as ex:
        return {
            "name": name,
            "ok": False,
            "problems": [describe_failure(ex, client.config)],
            "latency_ms": None,
        }
    latency_ms = (time.perf_counter() - t0) * 1000.0
    problems = check(data)
    return {"name": name, "ok": not problems, "problems": problems, "latency_ms": latency_ms}


async def run_selftest(client: ScoringClient) -> Dict[str, Any]:
    """Run the contract check against the configured service.

    Returns
    -------
    dict
        ``service_url``, ``passed``, ``total`` and per-call ``results``.
    """
    checks: List[Tuple[str, Callable[[], Any], Callable[[Any], List[str]]]] = []
    for text in SELFTEST_TEXTS:
        label = repr(text[:40])
        checks.append((f"POST /toxicity {label}", lambda t=text: client.toxicity(t), check_toxicity))
        checks.append((f"POST /edu-score {label}", lambda t=text: client.edu_score(t), check_edu_score))
    checks.append(("GET /logs", client.logs, check_logs))

    results = []
    for name, call, check in checks:
        results.append(await _run_one(name, call, check, client))

    return {
        "service_url": client.config.base_url,
        "passed": sum(1 for r in results if r["ok"]),
        "total": len(results),
        "results": results,
    }
