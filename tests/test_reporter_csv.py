import csv
import threading
from pathlib import Path

from streamreaper.reporter import Reporter, get_reporter


def test_reporter_write_csv(tmp_path: Path):
    r = Reporter()
    r.record(
        region="us-east-1",
        service="kinesis",
        resource_type="Kinesis Stream",
        action="delete",
        identifier="orders",
        meta={"batch": 1},
    )
    r.record(
        region="ap-south-1",
        service="kinesis",
        resource_type="Kinesis Stream",
        action="delete",
        identifier="clicks",
        error=RuntimeError("boom"),
    )

    out_file = tmp_path / "events.csv"
    written = r.write_csv(out_file)

    assert written.exists()
    rows = list(csv.reader(written.read_text().splitlines()))
    # header + 2 rows
    assert len(rows) == 3
    assert rows[0] == ["timestamp", "region", "service", "resource_type", "identifier", "action", "error", "meta"]
    assert rows[1][4] == "orders" and rows[1][6] == "" and rows[1][7] == '{"batch": 1}'
    assert rows[2][4] == "clicks" and rows[2][6] == "boom"

    # append mode
    r.clear()
    r.record(region="us-east-1", service="kinesis", resource_type="Kinesis Stream", action="delete", identifier="x")
    r.write_csv(out_file, overwrite=False)
    content2 = out_file.read_text().strip().splitlines()
    assert len(content2) == 4  # one more row, header not duplicated


def test_write_csv_append_to_new_file_writes_header(tmp_path: Path):
    r = Reporter()
    r.record("us-east-1", "kinesis", "Kinesis Stream", "catalog", identifier="a")
    out = r.write_csv(tmp_path / "nested" / "new.csv", overwrite=False)
    lines = out.read_text().strip().splitlines()
    assert lines[0].startswith("timestamp,")
    assert len(lines) == 2


def test_error_is_stored_as_text_and_failures_filter():
    r = Reporter()
    r.record("r", "kinesis", "Kinesis Stream", "delete", identifier="ok")
    r.record("r", "kinesis", "Kinesis Stream", "delete", identifier="bad", error=ValueError("nope"))

    (failure,) = r.failures()
    assert failure.identifier == "bad"
    assert failure.error == "nope"
    assert [d["identifier"] for d in r.to_dicts()] == ["ok", "bad"]


def test_concurrent_records_are_not_lost():
    r = Reporter()
    barrier = threading.Barrier(50)

    def worker(i: int) -> None:
        barrier.wait()
        for j in range(20):
            r.record("r", "kinesis", "Kinesis Stream", "delete", identifier=f"{i}-{j}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert r.count() == 1000
    assert len({e.identifier for e in r.snapshot()}) == 1000


def test_get_reporter_is_singleton():
    assert get_reporter() is get_reporter()
