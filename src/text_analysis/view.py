"""Client view: the state behind the single page and the flows that change it.

State
-----
- ``text``: the input text, kept between analyses.
- ``toxicity_result`` / ``edu_score_result``: the last full response bodies,
  or ``None``.
- ``logs``: the log history as returned by the service, in server order.
- ``error``: the user-visible error message, or ``None``.

Overlapping triggers
--------------------
The page can fire a second trigger before the first one finishes (double
click, two browser tabs). The policy is:

- ``analyze``: while an analysis is in flight, further analyze triggers are
  ignored and return ``False``.
- log fetches: every fetch and every successful clear bumps a generation
  counter; a fetch answer that arrives after a newer fetch or clear started is
  dropped. The latest trigger wins, and a clear is never undone by a stale
  fetch.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from text_analysis.diagnostics import get_logger
from text_analysis.scoring import ScoringClient, describe_failure


ANALYSIS_ERROR_MESSAGE = "An error occurred while processing the text."

logger = get_logger(__name__)


class ClientView:
    """Single state container for one user of the page.

    Parameters
    ----------
    client : ScoringClient
        Client for the remote scoring service.
    """

    def __init__(self, client: ScoringClient) -> None:
        self.client = client
        self.text = ""
        self.toxicity_result: Optional[Dict[str, Any]] = None
        self.edu_score_result: Optional[Dict[str, Any]] = None
        self.logs: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.analyzing = False
        self._logs_generation = 0

    async def load(self) -> None:
        """Initial page load: fetch the log history once."""
        await self.refresh_logs()

    async def analyze(self, text: Optional[str] = None) -> bool:
        """Score the text with both endpoints, one after the other.

        Parameters
        ----------
        text : str, optional
            New input text. When omitted the current ``text`` is used. Empty
            text is forwarded as-is.

        Returns
        -------
        bool
            ``False`` if the trigger was ignored because another analysis is
            still running, ``True`` otherwise (also when the analysis failed;
            see ``error``).
        """
        if self.analyzing:
            logger.warning("Analysis already in progress; ignoring new trigger")
            return False
        if text is not None:
            self.text = text

        self.analyzing = True
        try:
            self.error = None
            self.toxicity_result = None
            self.edu_score_result = None

            try:
                self.toxicity_result = await self.client.toxicity(self.text)
                self.edu_score_result = await self.client.edu_score(self.text)
            except (httpx.HTTPError, ValueError) as ex:
                self.error = ANALYSIS_ERROR_MESSAGE
                logger.error("Analysis failed:\n%s", describe_failure(ex, self.client.config))
                return True

            await self.refresh_logs()
            return True
        finally:
            self.analyzing = False

    async def refresh_logs(self) -> bool:
        """Replace the log history with the service's current list.

        Returns ``True`` if the logs were replaced. On failure, or when a
        newer fetch or clear overtook this one, the logs stay as they are.
        """
        self._logs_generation += 1
        generation = self._logs_generation
        try:
            logs = await self.client.logs()
        except (httpx.HTTPError, ValueError) as ex:
            logger.error("Failed to fetch logs:\n%s", describe_failure(ex, self.client.config))
            return False

        if generation != self._logs_generation:
            logger.info("Dropping stale log fetch (generation %d, current %d)", generation, self._logs_generation)
            return False
        self.logs = logs
        return True

    async def clear_logs(self) -> bool:
        """Delete the log history on the service and empty it locally."""
        try:
            await self.client.clear_logs()
        except (httpx.HTTPError, ValueError) as ex:
            logger.error("Failed to clear logs:\n%s", describe_failure(ex, self.client.config))
            return False

        self._logs_generation += 1
        self.logs = []
        return True
