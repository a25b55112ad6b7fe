import asyncio
import logging

import pytest

from signaldesk.analysis import AnalysisService, AnalysisUpdatedEvent
from signaldesk.providers import HistoricalDataClient
from signaldesk.runner import configure_logging, run_analysis


class StalledHistoryClient(HistoricalDataClient):
    async def get_intraday_history(self, info):
        await asyncio.Event().wait()


@pytest.fixture
def service(config, dispatcher, lookup, history_client, profile_store, iv_store):
    return AnalysisService(
        config,
        dispatcher,
        lookup=lookup,
        history_client=history_client,
        profile_store=profile_store,
        iv_store=iv_store,
    )


class TestRunAnalysis:

    @pytest.mark.asyncio
    async def test_consumes_stream_and_drains(self, service, dispatcher, tick_factory):
        published = []
        dispatcher.subscribe(AnalysisUpdatedEvent, published.append)

        async def stream():
            for seconds in range(3):
                yield tick_factory("13", 100.0 + seconds, seconds=seconds)
            yield tick_factory("25", 200.0)

        count = await run_analysis(service, stream())

        assert count == 4
        assert service.is_live("13")
        assert service.is_live("25")
        assert len(published) == 4

    @pytest.mark.asyncio
    async def test_cancellation_closes_service(self, config, dispatcher, lookup, profile_store, iv_store, tick_factory):
        service = AnalysisService(
            config,
            dispatcher,
            lookup=lookup,
            history_client=StalledHistoryClient(),
            profile_store=profile_store,
            iv_store=iv_store,
        )

        async def stream():
            yield tick_factory("13", 100.0)
            await asyncio.Event().wait()

        task = asyncio.create_task(run_analysis(service, stream()))
        for _ in range(3):
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert not service.is_live("13")
        assert service._pending_warmups() == []


class TestConfigureLogging:

    def test_noop_when_already_configured(self):
        root = logging.getLogger()
        root.addHandler(logging.NullHandler())
        before = (list(root.handlers), root.level)
        try:
            configure_logging("DEBUG")
            assert (list(root.handlers), root.level) == before
        finally:
            root.removeHandler(before[0][-1])

    def test_force_replaces_handlers(self):
        root = logging.getLogger()
        saved = (list(root.handlers), root.level)
        try:
            configure_logging("debug", force=True)

            assert root.level == logging.DEBUG
            (handler,) = root.handlers
            assert isinstance(handler, logging.StreamHandler)
            assert "%(name)s" in handler.formatter._fmt
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
