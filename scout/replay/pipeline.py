"""Replay source URLs through the link-generation form.

For every ``{old, origin}`` entry not yet in the output document, the form is
filled with ``origin``, submitted, and the generated tracking link is read
back.  Successes are appended to the output document and failures to the
failure document, each persisted immediately; one bad entry never stops the
batch.  Re-running over the same input only processes entries whose ``old``
is still missing from the output document.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from scout.browser.session import BrowserSession, RemoteSessionProvider, SessionMode
from scout.config import PipelineConfig, ms
from scout.errors import GenerationTimeoutError, StoreError, VerificationError
from scout.models import ReplayEntry, ReplayFailure, ReplayResult
from scout.store import JsonStore

ORIGIN_INPUT_SELECTOR = "input[placeholder='Landing Page']"
CREATE_BUTTON_SELECTOR = "button.button"
GENERATED_OUTPUT_SELECTOR = "input.inputNotEditing[readonly]"


class ReplayPipeline:
    """Regenerates tracking links for a batch of entries.

    Args:
        config: Pipeline configuration (form URL and polling timings).
        output_store: Document receiving ``{old, new}`` results.
        failure_store: Document receiving ``{old, origin, error}`` failures.
        provider: Session provider; the form is driven in an attached session.
    """

    def __init__(
        self,
        config: PipelineConfig,
        output_store: JsonStore,
        failure_store: JsonStore,
        provider: Optional[RemoteSessionProvider] = None,
    ) -> None:
        self._config = config
        self._output = output_store
        self._failures = failure_store
        self._provider = provider or RemoteSessionProvider(config)

    def pending(self, entries: Iterable[ReplayEntry]) -> List[ReplayEntry]:
        """Entries whose ``old`` is not in the output document, first occurrence only."""
        done = self._output.keys("old")
        pending: List[ReplayEntry] = []
        for entry in entries:
            if entry.old in done:
                continue
            done.add(entry.old)
            pending.append(entry)
        return pending

    def _poll_generated(self, page: Any) -> str:
        attempts = self._config.replay_poll_attempts
        for attempt in range(1, attempts + 1):
            element = page.query_selector(GENERATED_OUTPUT_SELECTOR)
            value = element.input_value() if element is not None else ""
            if value:
                return value
            print(f"[REPLAY] Retry {attempt}/{attempts} - generated link not ready")
            if attempt < attempts:
                page.wait_for_timeout(ms(self._config.replay_poll_interval))
        raise GenerationTimeoutError(f"No generated link after {attempts} attempts")

    def process_entry(self, session: BrowserSession, entry: ReplayEntry) -> ReplayResult:
        """Drive the form once for *entry* and return the generated link.

        Raises:
            VerificationError: The origin field does not hold exactly ``entry.origin``.
            GenerationTimeoutError: No generated value appeared while polling.
        """
        page = session.new_page()
        try:
            print("[REPLAY] Navigating to page …")
            page.goto(
                self._config.replay_url,
                wait_until="networkidle",
                timeout=ms(self._config.navigation_timeout),
            )

            print("[REPLAY] Typing URL …")
            origin_field = page.wait_for_selector(ORIGIN_INPUT_SELECTOR)
            origin_field.type(entry.origin)
            typed = origin_field.input_value()
            if typed != entry.origin:
                raise VerificationError(
                    f"URL input verification failed - expected {entry.origin!r}, got {typed!r}"
                )

            print("[REPLAY] Clicking create button …")
            page.click(CREATE_BUTTON_SELECTOR)
            page.wait_for_timeout(ms(self._config.replay_submit_wait))

            print("[REPLAY] Waiting for link generation …")
            generated = self._poll_generated(page)
        finally:
            page.close()

        new = generated if "://" in generated else f"https://{generated}"
        print(f"[REPLAY] ✓ Confirmed final value: {new}")
        return ReplayResult(old=entry.old, new=new)

    def run(self, entries: Iterable[ReplayEntry | dict[str, Any]]) -> List[ReplayResult]:
        """Process every pending entry and return the results of this run."""
        entries = [e if isinstance(e, ReplayEntry) else ReplayEntry.from_dict(e) for e in entries]
        try:
            self._output.ensure_exists()
            existing = len(self._output.load())
            pending = self.pending(entries)
        except StoreError as exc:
            print(f"[REPLAY] ✗ Process failed: {exc}")
            return []

        try:
            self._failures.load()
        except StoreError as exc:
            print(f"[REPLAY] ✗ {exc}; starting a new failure document")
            self._failures.save([])

        print(f"[REPLAY] Found {len(entries)} total entries")
        print(f"[REPLAY] Found {existing} existing entries")
        print(f"[REPLAY] Processing {len(pending)} new entries")
        if not pending:
            print("[REPLAY] No new entries to process")
            return []

        results: List[ReplayResult] = []
        with self._provider.connect(SessionMode.ATTACH) as session:
            for i, entry in enumerate(pending):
                print(f"\n[REPLAY] Processing entry {i + 1} of {len(pending)}")
                try:
                    result = self.process_entry(session, entry)
                except Exception as exc:
                    print(f"[REPLAY] ✗ Failed to process entry {i + 1}: {exc}")
                    failure = ReplayFailure(
                        old=entry.old,
                        origin=entry.origin,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                    self._failures.append(failure.to_dict())
                    continue
                self._output.append(result.to_dict())
                results.append(result)

        return results
