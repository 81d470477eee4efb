import logging
import time

from rds_exporter.collector import RegionCollector
from rds_exporter.models.metric import ALLOCATED_STORAGE, IOPS

from tests.conftest import FakeProvider, make_instance

TAG_KEYS = ("team", "env")


def _by_instance(metrics):
    out = {}
    for metric in metrics:
        out.setdefault(metric.labels[0], []).append(metric)
    return out


def test_collect_follows_all_pages(provider):
    metrics = RegionCollector(provider, TAG_KEYS).collect("us-east-1")

    by_instance = _by_instance(metrics)
    assert sorted(by_instance) == ["db-1", "db-2", "db-3"]
    assert [m.name for m in by_instance["db-1"]] == [ALLOCATED_STORAGE.name, IOPS.name]
    assert [m.name for m in by_instance["db-2"]] == [ALLOCATED_STORAGE.name]
    assert len(metrics) == 5


def test_samples_of_one_instance_share_labels(provider):
    metrics = RegionCollector(provider, TAG_KEYS).collect("us-east-1")
    for samples in _by_instance(metrics).values():
        assert len({m.labels for m in samples}) == 1
        assert all(len(m.labels) == 7 + len(TAG_KEYS) for m in samples)


def test_tags_are_resolved_per_instance(provider):
    metrics = RegionCollector(provider, TAG_KEYS).collect("us-east-1")
    by_instance = _by_instance(metrics)
    assert by_instance["db-1"][0].labels[-2:] == ("core", "")
    assert by_instance["db-2"][0].labels[-2:] == ("", "")


def test_page_failure_truncates_region(caplog):
    provider = FakeProvider(
        pages={
            "us-east-1": [
                [make_instance("db-1")],
                [make_instance("db-2")],
                [make_instance("db-3")],
            ]
        },
        page_errors={"us-east-1": 1},
    )

    with caplog.at_level(logging.ERROR):
        metrics = RegionCollector(provider, TAG_KEYS).collect("us-east-1")

    assert [m.labels[0] for m in metrics] == ["db-1"]
    assert "Couldn't list RDS instances in region us-east-1" in caplog.text


def test_tag_failure_keeps_instance(caplog):
    arn = "arn:aws:rds:us-east-1:123456789012:db:db-1"
    provider = FakeProvider(
        pages={"us-east-1": [[make_instance("db-1"), make_instance("db-2")]]},
        tags={arn: [{"Key": "team", "Value": "core"}]},
        tag_errors={arn},
    )

    with caplog.at_level(logging.WARNING):
        metrics = RegionCollector(provider, TAG_KEYS).collect("us-east-1")

    assert [m.labels[0] for m in metrics] == ["db-1", "db-2"]
    assert metrics[0].labels[-2:] == ("", "")
    assert f"Error listing tags for RDS instance {arn}" in caplog.text


def test_no_tag_calls_without_tag_keys(provider):
    RegionCollector(provider, ()).collect("us-east-1")
    assert provider.tag_calls == []


def test_unknown_region_is_empty(provider):
    assert RegionCollector(provider, TAG_KEYS).collect("ap-south-1") == []


def test_expired_deadline_stops_collection(provider, caplog):
    with caplog.at_level(logging.WARNING):
        metrics = RegionCollector(provider, TAG_KEYS).collect(
            "us-east-1", deadline=time.monotonic() - 1
        )

    assert metrics == []
    assert provider.tag_calls == []
    assert "Deadline exceeded" in caplog.text


def test_listing_error_on_first_call(caplog):
    class Broken(FakeProvider):
        def describe_instances(self, region):
            raise RuntimeError("no route to host")

    with caplog.at_level(logging.ERROR):
        metrics = RegionCollector(Broken(), TAG_KEYS).collect("us-east-1")

    assert metrics == []
    assert "no route to host" in caplog.text
