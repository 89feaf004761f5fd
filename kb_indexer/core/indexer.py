"""Source indexer for adding newsletter sources to the knowledge base.

Handles single sources and batches, skips URLs that are already indexed,
and reports per-URL outcomes as data instead of raising.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from kb_indexer.core.interfaces import IndexingService
from kb_indexer.core.tracker import IndexStateTracker
from kb_indexer.core.urls import extract_valid_urls
from kb_indexer.models.indexing import (
    BatchItemStatus,
    BatchProgress,
    IndexResult,
    SourceRequest,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], None]


class CancellationToken:
    """Cooperative cancellation flag for one batch run."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


def _no_valid_urls(original: str) -> IndexResult:
    return IndexResult(
        url=original,
        success=False,
        was_already_indexed=False,
        error=f"No valid URLs found in: {original}",
    )


class SourceIndexer:
    """Coordinates indexing of sources into the knowledge base."""

    def __init__(
        self, service: IndexingService, tracker: Optional[IndexStateTracker] = None
    ):
        """Initialize the indexer.

        Args:
            service: Backend that fetches and stores URLs
            tracker: Shared state tracker; a new one is created if omitted
        """
        self.service = service
        self.tracker = tracker or IndexStateTracker(service)
        self.batch_progress: Optional[BatchProgress] = None
        self._batch_lock = asyncio.Lock()
        self._active_token: Optional[CancellationToken] = None

    # Read-only status checks

    def is_indexed(self, url: str) -> bool:
        return self.tracker.is_indexed(url)

    def is_indexing(self, url: str) -> bool:
        return self.tracker.is_indexing(url)

    async def refresh(self) -> Optional[str]:
        return await self.tracker.refresh()

    # Single source indexing

    async def index_source(self, request: SourceRequest) -> IndexResult:
        """
        Index one logical source, which may expand to several URLs.

        Args:
            request: The source to index

        Returns:
            A single IndexResult summarizing all of the source's URLs
        """
        urls, original = extract_valid_urls(request.url)
        if not urls:
            return _no_valid_urls(original)
        urls = list(dict.fromkeys(urls))

        self.tracker.mark_in_flight(urls)
        try:
            outcomes = []
            confirmed_urls = []
            for url in urls:
                outcome, confirmed = await self._index_one(url, request)
                outcomes.append(outcome)
                if confirmed:
                    confirmed_urls.append(url)

            failures = [o for o in outcomes if not o.success]
            any_success = len(failures) < len(outcomes)
            all_already_indexed = all(o.was_already_indexed for o in outcomes)

            self.tracker.add_indexed(confirmed_urls)

            result_url = urls[0] if len(urls) == 1 else original
            document = next((o.document for o in outcomes if o.document), None)

            if any_success:
                error = None
                if failures:
                    error = (
                        f"Partially indexed: {len(failures)} of {len(urls)} URLs failed "
                        f"({self._summarize(failures)})"
                    )
                    logger.warning(f"⚠️ {error}")
                return IndexResult(
                    url=result_url,
                    success=True,
                    was_already_indexed=all_already_indexed,
                    document=document,
                    error=error,
                )

            if len(failures) == 1:
                error = failures[0].error
            else:
                error = f"Failed to index all {len(urls)} URLs: {self._summarize(failures)}"
            return IndexResult(
                url=result_url,
                success=False,
                was_already_indexed=False,
                error=error,
            )
        finally:
            self.tracker.clear_in_flight(urls)

    async def _index_one(
        self, url: str, request: SourceRequest
    ) -> Tuple[IndexResult, bool]:
        """Index one URL; the flag tells whether it is confirmed in the knowledge base."""
        if url in self.tracker.indexed_urls:
            logger.info(f"URL already indexed: {url}")
            return IndexResult(url=url, success=True, was_already_indexed=True), True

        try:
            response = await self.service.fetch_and_index_url(
                url, request.title, request.source_type, request.metadata
            )
        except Exception as e:
            logger.error(f"❌ Error indexing {url}: {e}")
            result = IndexResult(
                url=url,
                success=False,
                was_already_indexed=False,
                error=str(e) or "Failed to index source",
            )
            return result, False

        # Only a stored document or an existing one confirms the URL
        confirmed = bool(response.was_already_indexed or response.document)
        if confirmed:
            logger.info(
                f"✅ {'Already indexed' if response.was_already_indexed else 'Indexed'}: {url}"
            )
        else:
            logger.warning(f"No document returned for {url}: {response.message}")

        result = IndexResult(
            url=url,
            success=True,
            was_already_indexed=response.was_already_indexed,
            document=response.document,
        )
        return result, confirmed

    @staticmethod
    def _summarize(failures: Sequence[IndexResult]) -> str:
        return "; ".join(f"{f.url}: {f.error}" for f in failures)

    # Batch indexing

    def cancel_batch(self) -> None:
        """Ask the running batch to stop applying further results."""
        if self._active_token is not None:
            self._active_token.cancel()
        logger.info("Batch cancellation requested")

    async def index_sources_batch(
        self,
        requests: Sequence[SourceRequest],
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[IndexResult]:
        """
        Index many sources with a single call to the indexing service.

        Overlapping calls run one after another.

        Args:
            requests: Sources to index
            token: Cancellation token for this run; a fresh one by default
            on_progress: Called with a progress snapshot after every update

        Returns:
            One IndexResult per invalid request and per processed URL
        """
        token = token or CancellationToken()
        async with self._batch_lock:
            self._active_token = token
            try:
                return await self._run_batch(requests, token, on_progress)
            finally:
                self._active_token = None

    async def _run_batch(
        self,
        requests: Sequence[SourceRequest],
        token: CancellationToken,
        on_progress: Optional[ProgressCallback],
    ) -> List[IndexResult]:
        invalid: List[IndexResult] = []
        to_submit: List[SourceRequest] = []
        pre_indexed: List[str] = []

        for request in requests:
            urls, original = extract_valid_urls(request.url)
            if not urls:
                invalid.append(_no_valid_urls(original))
                continue
            for url in urls:
                if url in self.tracker.indexed_urls:
                    pre_indexed.append(url)
                else:
                    to_submit.append(request.model_copy(update={"url": url}))

        if not to_submit and not pre_indexed:
            return invalid

        progress = BatchProgress(
            total=len(requests), failed=len(invalid), is_running=True
        )
        self.batch_progress = progress
        self._notify(on_progress, progress)

        submitted_urls = [item.url for item in to_submit]
        self.tracker.mark_in_flight(submitted_urls)
        results = list(invalid)
        confirmed: List[str] = []

        try:
            service_results = []
            if to_submit:
                try:
                    response = await self.service.fetch_and_index_batch(to_submit)
                    service_results = response.results
                except Exception as e:
                    message = str(e) or "Batch indexing failed"
                    logger.error(f"❌ Batch error: {e}")
                    results.extend(
                        IndexResult(url=url, success=True, was_already_indexed=True)
                        for url in pre_indexed
                    )
                    results.extend(
                        IndexResult(
                            url=url,
                            success=False,
                            was_already_indexed=False,
                            error=message,
                        )
                        for url in submitted_urls
                    )
                    progress.already_indexed += len(pre_indexed)
                    progress.completed += len(pre_indexed)
                    progress.failed += len(submitted_urls)
                    return results

            for url in pre_indexed:
                if token.cancelled:
                    break
                results.append(
                    IndexResult(url=url, success=True, was_already_indexed=True)
                )
                progress.already_indexed += 1
                progress.completed += 1
                self._notify(on_progress, progress)

            for item in service_results:
                if token.cancelled:
                    break

                if item.status == BatchItemStatus.INDEXED:
                    progress.indexed += 1
                    confirmed.append(item.url)
                    results.append(
                        IndexResult(
                            url=item.url,
                            success=True,
                            was_already_indexed=False,
                            document=item.document,
                        )
                    )
                elif item.status == BatchItemStatus.EXISTS:
                    progress.already_indexed += 1
                    confirmed.append(item.url)
                    results.append(
                        IndexResult(
                            url=item.url,
                            success=True,
                            was_already_indexed=True,
                            document=item.document,
                        )
                    )
                else:
                    progress.failed += 1
                    results.append(
                        IndexResult(
                            url=item.url,
                            success=False,
                            was_already_indexed=False,
                            error=item.error,
                        )
                    )

                progress.completed += 1
                self._notify(on_progress, progress)

            self.tracker.add_indexed(confirmed)
            if token.cancelled:
                logger.info(f"Batch cancelled after {progress.completed} result(s)")
            logger.info(
                f"📦 Batch finished: indexed={progress.indexed}, "
                f"alreadyIndexed={progress.already_indexed}, failed={progress.failed}"
            )
            return results
        finally:
            self.tracker.clear_in_flight(submitted_urls)
            progress.is_running = False
            self._notify(on_progress, progress)

    @staticmethod
    def _notify(callback: Optional[ProgressCallback], progress: BatchProgress) -> None:
        if callback is None:
            return
        try:
            callback(progress.model_copy())
        except Exception as e:
            logger.error(f"Progress callback failed: {e}")
