import threading

from application_status.events import CacheDepthChanged, RecordsSent, ServerStatusChanged, StatusEventFeed
from application_status.reporter import RECORD_COUNTS_TOPIC, ApplicationStatusReporter
from application_status.sink import MemoryRecordSink
from application_status.state import UploadStatus


class NoAddress:
    def resolve(self) -> None:
        return None


def test_concurrent_events_and_ticks_smoke() -> None:
    sink = MemoryRecordSink()
    feed = StatusEventFeed()
    reporter = ApplicationStatusReporter(sink, feed=feed, ip_resolver=NoAddress())  # type: ignore[arg-type]
    reporter.start()
    errors: list[Exception] = []

    def producer(index: int) -> None:
        try:
            for step in range(200):
                feed.publish(RecordsSent(count=1))
                feed.publish(CacheDepthChanged(channel=f"topic-{index}", unsent=step, sent=step))
                feed.publish(ServerStatusChanged(status=UploadStatus.UPLOADING))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    def ticker() -> None:
        try:
            for _ in range(50):
                reporter.run()
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=producer, args=(index,)) for index in range(8)]
    threads.append(threading.Thread(target=ticker))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    reporter.close()

    assert not errors
    assert reporter.state.records_sent == 8 * 200
    totals = reporter.state.cache_totals()
    assert totals.unsent == 8 * 199
    assert totals.sent == 8 * 199
    # Every tick's counts are internally consistent.
    for record in sink.by_topic(RECORD_COUNTS_TOPIC):
        assert record.cached_records >= record.cached_unsent_records  # type: ignore[attr-defined]
