"""
Run orchestration. One pipeline per feed, all feeds gathered on one event loop.

Channel feed: collect -> block filter -> one push -> cursor commit
Thread feed:  per page: collect -> cache filter -> per thread: push -> mark

A feed's failure is recorded in its RunResult and never stops its siblings.
"""

import asyncio
import logging
from contextlib import aclosing

from collectors import ChannelCollector, ThreadCollector
from config.settings import Config
from delivery import Dispatcher, render_channel_post, render_thread
from errors import RelayError
from filters import filter_blocked, filter_delivered
from models import RunReport, RunResult
from storage.db import CursorStore, ItemCache, Storage
from transport import Transport

log = logging.getLogger(__name__)


class Runner:
    def __init__(self, config: Config, storage: Storage, transport: Transport):
        self.config = config
        self.cursors = CursorStore(storage)
        self.cache = ItemCache(storage)
        self.dispatcher = Dispatcher(transport, config)
        self.channel_collector = ChannelCollector(transport, config)
        self.thread_collector = ThreadCollector(transport, config)

    async def run_channel(self, channel: str) -> RunResult:
        result = RunResult(channel)
        try:
            await self._channel(channel, result)
        except Exception as e:
            self._record(result, e)
        return result

    async def run_threads(self, force: bool | None = None) -> RunResult:
        result = RunResult(self.thread_collector.feed_id)
        try:
            await self._threads(self.config.force if force is None else force, result)
        except Exception as e:
            self._record(result, e)
        return result

    async def _channel(self, channel: str, result: RunResult):
        cursor = self.cursors.read(channel) or 0
        batch = await self.channel_collector.collect(channel, cursor, self.config.once_max_size)
        if not batch:
            return

        eligible = filter_blocked(batch, self.config.block_keywords)
        if len(eligible) < len(batch):
            log.info(f"[{channel}] blocked {len(batch) - len(eligible)} posts by keyword")

        await self.dispatcher.deliver(channel, eligible, render_channel_post)
        result.delivered = len(eligible)

        # Blocked posts still advance the cursor.
        stored = self.cursors.write(channel, batch[-1].item_id)
        log.info(f"[{channel}] cursor -> {stored}")

    async def _threads(self, force: bool, result: RunResult):
        pushed: set[int] = set()
        async with aclosing(self.thread_collector.pages()) as pages:
            async for page, items in pages:
                for item in filter_delivered(items, self.cache, force):
                    # Threads move between pages as replies land; push once per run.
                    if item.item_id in pushed:
                        continue
                    await self.dispatcher.deliver(result.feed_id, [item], render_thread)
                    self.cache.mark(item.item_id)
                    pushed.add(item.item_id)
                    result.delivered += 1
                    log.debug(f"[{result.feed_id}] page {page}: marked {self.cache.key(item.item_id)}")

    def _record(self, result: RunResult, error: Exception):
        # Our own errors carry their context; anything else gets a traceback.
        log.error(f"Feed {result.feed_id} failed: {error}", exc_info=not isinstance(error, RelayError))
        result.error = error

    async def run(self, channels: bool = True, threads: bool = True, force: bool | None = None) -> RunReport:
        tasks = []
        if channels:
            tasks.extend(self.run_channel(channel) for channel in self.config.channels)
        if threads and self.config.nga_fids:
            tasks.append(self.run_threads(force))

        report = RunReport(list(await asyncio.gather(*tasks)))
        for r in report.results:
            status = "ok" if r.ok else f"error: {r.error}"
            log.info(f"{r.feed_id}: delivered {r.delivered} ({status})")
        return report


def run_once(config: Config, storage: Storage, transport: Transport, **kwargs) -> RunReport:
    """Blocking entry point: one full run, one report."""
    return asyncio.run(Runner(config, storage, transport).run(**kwargs))
