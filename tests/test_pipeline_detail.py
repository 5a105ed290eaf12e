"""Tests de carry-forward y del detail aggregator."""

import random

from conftest import CERT_LIFETIME, DAY, JOB_SUBMIT, MINUTE
from status_engine.core.domain.records import MetricSample
from status_engine.core.domain.topology import TopologyMembership
from status_engine.core.monitoring.stats import MALFORMED, REFERENTIAL_GAP, RunSummary
from status_engine.core.pipeline import aggregate_detail, select_carry_forward
from status_engine.core.pipeline.detail import GAP_ENDPOINT, GAP_METRIC, detail_key
from status_engine.core.topology_index import build_index


# =============================================================================
# CARRY-FORWARD
# =============================================================================

class TestCarryForward:

    def test_latest_sample_per_key(self, sample):
        prior = [
            sample("OK", DAY - 60 * MINUTE),
            sample("WARNING", DAY - 2 * MINUTE),
            sample("CRITICAL", DAY - 30 * MINUTE),
            sample("OK", DAY - 10 * MINUTE, metric=CERT_LIFETIME),
        ]
        selected = select_carry_forward(prior)

        assert len(selected) == 2
        by_metric = {s.metric: s for s in selected}
        assert by_metric[JOB_SUBMIT].status == "WARNING"
        assert by_metric[JOB_SUBMIT].timestamp == DAY - 2 * MINUTE
        assert by_metric[CERT_LIFETIME].status == "OK"

    def test_idempotent(self, sample):
        prior = [sample("OK", DAY - i * MINUTE) for i in range(1, 6)]
        first = select_carry_forward(prior)
        assert select_carry_forward(prior) == first
        assert select_carry_forward(first) == first

    def test_tie_keeps_first_in_input_order(self, sample):
        prior = [sample("OK", DAY - MINUTE), sample("CRITICAL", DAY - MINUTE)]
        assert select_carry_forward(prior)[0].status == "OK"

    def test_empty_prior_period(self):
        assert select_carry_forward([]) == []


# =============================================================================
# DETAIL AGGREGATOR
# =============================================================================

class TestDetailAggregator:

    def test_ok_then_critical_links_previous(self, sample, index):
        t1, t2 = DAY + MINUTE, DAY + 2 * MINUTE
        detail = aggregate_detail([sample("CRITICAL", t2), sample("OK", t1)], index)

        assert [(d.timestamp, d.status) for d in detail] == [(t1, "OK"), (t2, "CRITICAL")]
        assert detail[0].prev_status is None
        assert detail[0].prev_timestamp is None
        assert detail[1].prev_status == "OK"
        assert detail[1].prev_timestamp == t1
        assert detail[0].group == "SITE-A"

    def test_carry_forward_seeds_previous_status(self, sample, index):
        t0 = DAY - 2 * MINUTE   # 23:58 del día anterior
        t1 = DAY + 5 * MINUTE   # 00:05
        carried = select_carry_forward([sample("OK", t0 - MINUTE), sample("WARNING", t0)])
        detail = aggregate_detail([sample("OK", t1)] + carried, index)

        assert len(detail) == 2
        assert detail[0].timestamp == t0
        assert detail[0].prev_status is None
        current = detail[1]
        assert current.timestamp == t1
        assert current.prev_status == "WARNING"
        assert current.prev_timestamp == t0

    def test_partitions_sorted_and_linked(self, sample, index):
        rng = random.Random(3)
        samples = [
            sample(rng.choice(["OK", "WARNING", "CRITICAL"]), DAY + i * MINUTE, metric=m)
            for i in range(20)
            for m in (JOB_SUBMIT, CERT_LIFETIME)
        ]
        detail = aggregate_detail(samples, index)

        partitions = {}
        for d in detail:
            partitions.setdefault(detail_key(d), []).append(d)
        assert len(partitions) == 2
        for records in partitions.values():
            assert [r.timestamp for r in records] == sorted(r.timestamp for r in records)
            for prev, cur in zip(records, records[1:]):
                assert cur.prev_timestamp == prev.timestamp
                assert cur.prev_status == prev.status
                assert cur.prev_timestamp < cur.timestamp

    def test_output_independent_of_arrival_order(self, sample, index):
        samples = [
            sample(s, DAY + i * MINUTE, metric=m)
            for i, s in enumerate(["OK", "CRITICAL", "WARNING", "OK", "UNKNOWN"])
            for m in (JOB_SUBMIT, CERT_LIFETIME)
        ]
        expected = aggregate_detail(samples, index)
        rng = random.Random(7)
        for _ in range(5):
            shuffled = list(samples)
            rng.shuffle(shuffled)
            assert aggregate_detail(shuffled, index, workers=3) == expected

    def test_drops_referential_gaps(self, sample, index):
        summary = RunSummary()
        detail = aggregate_detail(
            [
                sample("OK"),
                sample("OK", metric="not.in.profile"),
                sample("OK", hostname="unknown.host"),
            ],
            index,
            summary,
        )
        assert len(detail) == 1
        assert summary.count(REFERENTIAL_GAP) == 2
        assert summary.reasons[GAP_METRIC] == 1
        assert summary.reasons[GAP_ENDPOINT] == 1

    def test_endpoint_in_two_groups_yields_record_per_group(self, hierarchy, metric_profiles, sample):
        memberships = [
            TopologyMembership("SITE-A", "CREAM-CE", "ce01.site-a.org", "SITES"),
            TopologyMembership("SITE-B", "CREAM-CE", "ce01.site-a.org", "SITES"),
        ]
        idx = build_index(memberships, hierarchy, metric_profiles, "ROC_CRITICAL", "SITES")
        detail = aggregate_detail([sample("OK")], idx)
        assert [d.group for d in detail] == ["SITE-A", "SITE-B"]

    def test_duplicate_timestamp_collapsed(self, sample, index):
        summary = RunSummary()
        detail = aggregate_detail(
            [sample("OK", DAY), sample("CRITICAL", DAY + MINUTE), sample("WARNING", DAY + MINUTE)],
            index,
            summary,
        )
        assert [(d.timestamp, d.status) for d in detail] == [(DAY, "OK"), (DAY + MINUTE, "WARNING")]
        assert detail[1].prev_status == "OK"
        assert summary.count(MALFORMED) == 1

    def test_duplicate_counted_once_for_endpoint_in_two_groups(self, hierarchy, metric_profiles, sample):
        memberships = [
            TopologyMembership("SITE-A", "CREAM-CE", "ce01.site-a.org", "SITES"),
            TopologyMembership("SITE-B", "CREAM-CE", "ce01.site-a.org", "SITES"),
        ]
        idx = build_index(memberships, hierarchy, metric_profiles, "ROC_CRITICAL", "SITES")
        summary = RunSummary()
        detail = aggregate_detail([sample("OK", DAY), sample("CRITICAL", DAY)], idx, summary)

        assert [(d.group, d.status) for d in detail] == [("SITE-A", "OK"), ("SITE-B", "OK")]
        assert summary.count(MALFORMED) == 1


class TestMetricSample:

    def test_derives_date_and_time_integers(self):
        s = MetricSample(service="s", hostname="h", metric="m", status="OK",
                         timestamp=DAY + 13 * 3600 * 1000 + 5 * MINUTE + 9000)
        assert s.date_integer == 20150501
        assert s.time_integer == 130509

    def test_accepts_iso_timestamp_and_aliases(self):
        s = MetricSample.model_validate({
            "service": "s", "hostname": "h", "metric": "m", "status": "OK",
            "timestamp": "2015-05-01T00:05:00Z", "dateInt": 20150501, "timeInt": 500,
        })
        assert s.timestamp == DAY + 5 * MINUTE
        assert s.time_integer == 500
