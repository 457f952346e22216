"""
tests/test_scraper_executions.py

Execution record persistence, filtering, statistics and the admin API.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from db.models import ScraperExecutionStatus
from db.repositories import ScraperExecutionRepository


def _record(
    repo: ScraperExecutionRepository,
    *,
    status: str,
    started_at: datetime,
    attempted: int = 2,
    failed: int | None = None,
    error_summary: str | None = None,
):
    if failed is None:
        failed = {"success": 0, "failure": attempted, "partial_success": 1}[status]
    execution = repo.create_execution(started_at=started_at)
    return repo.finalize_execution(
        execution,
        status=status,
        commanders_attempted=attempted,
        commanders_succeeded=attempted - failed,
        commanders_failed=failed,
        error_summary=error_summary,
        finished_at=started_at + timedelta(seconds=90),
    )


@pytest.fixture()
def seeded(db_session):
    """3 success + 2 failure + 1 partial_success spread over three days."""
    repo = ScraperExecutionRepository(db_session)
    day1 = datetime(2026, 10, 5, 4, 0, tzinfo=timezone.utc)
    day2 = datetime(2026, 10, 12, 4, 0, tzinfo=timezone.utc)
    day3 = datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc)
    records = [
        _record(repo, status="success", started_at=day1),
        _record(repo, status="failure", started_at=day1 + timedelta(hours=1), error_summary="FetchError: boom"),
        _record(repo, status="success", started_at=day2),
        _record(repo, status="partial_success", started_at=day2 + timedelta(hours=2)),
        _record(repo, status="failure", started_at=day3),
        _record(repo, status="success", started_at=day3 + timedelta(hours=3)),
    ]
    db_session.commit()
    return records


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TestScraperExecutionRepository:
    def test_new_execution_is_pending(self, db_session) -> None:
        execution = ScraperExecutionRepository(db_session).create_execution()

        assert execution.status == ScraperExecutionStatus.PENDING
        assert execution.finished_at is None
        assert execution.execution_time_seconds is None
        assert execution.success_rate == 0.0

    def test_finalize_rejects_non_final_status(self, db_session) -> None:
        repo = ScraperExecutionRepository(db_session)
        execution = repo.create_execution()

        with pytest.raises(ValueError, match="Cannot finalize"):
            repo.finalize_execution(
                execution,
                status=ScraperExecutionStatus.PENDING,
                commanders_attempted=0,
                commanders_succeeded=0,
                commanders_failed=0,
            )

    def test_finalize_rejects_inconsistent_counts(self, db_session) -> None:
        repo = ScraperExecutionRepository(db_session)
        execution = repo.create_execution()

        with pytest.raises(ValueError, match="must equal"):
            repo.finalize_execution(
                execution,
                status=ScraperExecutionStatus.SUCCESS,
                commanders_attempted=3,
                commanders_succeeded=1,
                commanders_failed=1,
            )

    def test_derived_fields(self, db_session, seeded) -> None:
        partial = seeded[3]

        assert partial.execution_time_seconds == 90.0
        assert partial.success_rate == 50.0
        assert seeded[0].success_rate == 100.0

    def test_stats(self, db_session, seeded) -> None:
        stats = ScraperExecutionRepository(db_session).get_stats()

        assert stats.total_executions == 6
        assert stats.successful_executions == 3
        assert stats.failed_executions == 2
        assert stats.partial_success_executions == 1
        assert stats.success_rate == 50.0

    def test_stats_ignore_pending_runs(self, db_session, seeded) -> None:
        repo = ScraperExecutionRepository(db_session)
        repo.create_execution()
        db_session.commit()

        stats = repo.get_stats()

        assert stats.total_executions == 6
        assert stats.success_rate == 50.0

    def test_stats_on_empty_table(self, db_session) -> None:
        stats = ScraperExecutionRepository(db_session).get_stats()

        assert stats.total_executions == 0
        assert stats.success_rate == 0.0

    def test_list_is_newest_first(self, db_session, seeded) -> None:
        executions = ScraperExecutionRepository(db_session).list_executions()

        assert [execution.id for execution in executions] == [record.id for record in reversed(seeded)]

    def test_filters_intersect(self, db_session, seeded) -> None:
        executions = ScraperExecutionRepository(db_session).list_executions(
            status="success",
            start_date=date(2026, 10, 12),
        )

        assert [execution.id for execution in executions] == [seeded[5].id, seeded[2].id]

    def test_end_date_includes_the_whole_day(self, db_session, seeded) -> None:
        executions = ScraperExecutionRepository(db_session).list_executions(end_date=date(2026, 10, 5))

        assert {execution.id for execution in executions} == {seeded[0].id, seeded[1].id}

    def test_limit_is_clamped(self, db_session, seeded) -> None:
        repo = ScraperExecutionRepository(db_session)

        assert len(repo.list_executions(limit=2)) == 2
        assert len(repo.list_executions(limit=500)) == 6


# ---------------------------------------------------------------------------
# Admin API
# ---------------------------------------------------------------------------


class TestScraperExecutionsAPI:
    def test_list_returns_serialized_records(self, api_client, seeded) -> None:
        response = api_client.get("/admin/scraper_executions")

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 6
        assert body[0]["id"] == seeded[5].id
        assert set(body[0]) == {
            "id",
            "started_at",
            "finished_at",
            "status",
            "commanders_attempted",
            "commanders_succeeded",
            "commanders_failed",
            "execution_time_seconds",
            "success_rate",
            "error_summary",
            "created_at",
            "updated_at",
        }

    def test_status_and_start_date_filters_intersect(self, api_client, seeded) -> None:
        response = api_client.get(
            "/admin/scraper_executions",
            params={"status": "success", "start_date": "2026-10-12"},
        )

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [seeded[5].id, seeded[2].id]

    def test_limit_param(self, api_client, seeded) -> None:
        response = api_client.get("/admin/scraper_executions", params={"limit": 3})

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.parametrize(
        "params",
        [
            {"status": "exploded"},
            {"start_date": "not-a-date"},
            {"end_date": "2026-13-40"},
            {"limit": 51},
            {"limit": 0},
        ],
    )
    def test_invalid_params_are_rejected(self, api_client, params) -> None:
        response = api_client.get("/admin/scraper_executions", params=params)

        assert response.status_code == 422

    def test_stats_endpoint(self, api_client, seeded) -> None:
        response = api_client.get("/admin/scraper_executions/stats")

        assert response.status_code == 200
        assert response.json() == {
            "total_executions": 6,
            "successful_executions": 3,
            "failed_executions": 2,
            "partial_success_executions": 1,
            "success_rate": 50.0,
        }

    def test_show_endpoint(self, api_client, seeded) -> None:
        failed = seeded[1]

        response = api_client.get(f"/admin/scraper_executions/{failed.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "failure"
        assert body["error_summary"] == "FetchError: boom"
        assert body["execution_time_seconds"] == 90.0

    def test_show_missing_execution(self, api_client) -> None:
        response = api_client.get("/admin/scraper_executions/424242")

        assert response.status_code == 404
        assert response.json() == {"detail": "Execution not found"}
