"""Tests for the in-memory store."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from carecircle.core.exceptions import StoreError
from carecircle.models.profile import UserRole
from carecircle.store import Embed, MemoryStore


class TestInsert:
    async def test_completes_defaults(self, store):
        row = await store.insert(
            "tasks", {"patient_id": uuid.uuid4(), "title": "Walk"}
        )

        assert isinstance(row["id"], uuid.UUID)
        assert row["status"] == "pending"
        assert row["is_active"] is True
        assert row["description"] is None
        assert row["created_at"] is not None

    async def test_unknown_column(self, store):
        with pytest.raises(StoreError, match="Unknown column"):
            await store.insert("tasks", {"patient_id": uuid.uuid4(), "colour": "red"})

    async def test_unknown_table(self, store):
        with pytest.raises(StoreError, match="Unknown table"):
            await store.select("widgets")

    async def test_returned_rows_are_copies(self, store):
        row = await store.insert("profiles", {"email": "a@example.com"})
        row["email"] = "changed@example.com"

        stored = await store.select_one("profiles", id=row["id"])
        assert stored["email"] == "a@example.com"

    def test_seed_tables(self):
        store = MemoryStore({"profiles": [{"email": "a@example.com"}]})

        assert store.count("profiles") == 1


class TestSelect:
    async def test_filters(self, store):
        await store.insert("profiles", {"email": "a@example.com", "role": UserRole.CAREGIVER})
        await store.insert("profiles", {"email": "b@example.com"})
        await store.insert("profiles", {"email": None})

        caregivers = await store.select("profiles", where={"role": "caregiver"})
        others = await store.select("profiles", where_not={"role": UserRole.CAREGIVER})
        picked = await store.select(
            "profiles", where_in={"email": ["b@example.com", "z@example.com"]}
        )

        assert [r["email"] for r in caregivers] == ["a@example.com"]
        assert len(others) == 2
        assert [r["email"] for r in picked] == ["b@example.com"]

    async def test_where_not_skips_nulls(self, store):
        await store.insert("profiles", {"email": None})

        assert await store.select("profiles", where_not={"email": "x@example.com"}) == []

    async def test_order_nulls_last_and_limit(self, store):
        patient_id = uuid.uuid4()
        await store.insert("tasks", {"patient_id": patient_id, "title": "b", "scheduled_time": "09:00"})
        await store.insert("tasks", {"patient_id": patient_id, "title": "a", "scheduled_time": None})
        await store.insert("tasks", {"patient_id": patient_id, "title": "c", "scheduled_time": "07:00"})

        ascending = await store.select("tasks", order_by="scheduled_time")
        descending = await store.select("tasks", order_by="scheduled_time", descending=True, limit=2)

        assert [r["title"] for r in ascending] == ["c", "b", "a"]
        assert [r["title"] for r in descending] == ["b", "c"]


class TestSelectRelated:
    async def test_one_many_and_count(self, store):
        now = datetime.now(UTC)
        caregiver = await store.insert("profiles", {"role": UserRole.CAREGIVER})
        patients = []
        for i in range(2):
            profile = await store.insert("profiles", {})
            patients.append(await store.insert("patients", {"id": profile["id"]}))
            await store.insert(
                "caregiver_patients",
                {
                    "caregiver_id": caregiver["id"],
                    "patient_id": profile["id"],
                    "created_at": now - timedelta(minutes=i),
                },
            )

        [counted] = await store.select_related(
            "profiles",
            [Embed("n", "caregiver_patients", "id", "caregiver_id", count=True)],
            where={"id": caregiver["id"]},
        )
        rows = await store.select_related(
            "patients",
            [
                Embed("profile", "profiles", "id", "id"),
                Embed("links", "caregiver_patients", "id", "patient_id", many=True),
            ],
        )

        assert counted["n"] == 2
        assert all(row["profile"]["id"] == row["id"] for row in rows)
        assert all(len(row["links"]) == 1 for row in rows)

    async def test_missing_related_row(self, store):
        await store.insert("audit_logs", {"action": "x", "user_id": None})

        [row] = await store.select_related(
            "audit_logs", [Embed("actor", "profiles", "user_id", "id")]
        )

        assert row["actor"] is None


class TestWrites:
    async def test_update_refreshes_updated_at(self, store):
        row = await store.insert(
            "profiles", {"updated_at": datetime.now(UTC) - timedelta(days=1)}
        )

        await store.update("profiles", {"first_name": "Rose"}, where={"id": row["id"]})

        stored = await store.select_one("profiles", id=row["id"])
        assert stored["first_name"] == "Rose"
        assert stored["updated_at"] > row["updated_at"]

    async def test_unfiltered_writes_are_refused(self, store):
        with pytest.raises(StoreError):
            await store.update("profiles", {"first_name": "x"}, where={})
        with pytest.raises(StoreError):
            await store.delete("profiles", where={})

    async def test_profile_delete_cascades_and_nulls_audit_actor(self, store):
        profile = await store.insert("profiles", {})
        await store.insert("patients", {"id": profile["id"]})
        medication = await store.insert(
            "medications", {"patient_id": profile["id"], "name": "Donepezil"}
        )
        await store.insert(
            "medication_logs",
            {
                "medication_id": medication["id"],
                "patient_id": profile["id"],
                "status": "taken",
                "date": "2026-10-19",
            },
        )
        entry = await store.insert("audit_logs", {"action": "x", "user_id": profile["id"]})

        await store.delete("profiles", where={"id": profile["id"]})

        assert store.count("patients") == 0
        assert store.count("medications") == 0
        assert store.count("medication_logs") == 0
        kept = await store.select_one("audit_logs", id=entry["id"])
        assert kept["user_id"] is None


class TestConstraints:
    """Schema constraints are enforced like PostgreSQL enforces them."""

    async def _pair(self, store):
        caregiver = await store.insert("profiles", {"role": UserRole.CAREGIVER})
        patient = await store.insert("profiles", {})
        await store.insert("patients", {"id": patient["id"]})
        return caregiver, patient

    async def test_duplicate_link_insert(self, store):
        caregiver, patient = await self._pair(store)
        link = {"caregiver_id": caregiver["id"], "patient_id": patient["id"]}
        await store.insert("caregiver_patients", link)

        with pytest.raises(StoreError, match="uq_caregiver_patient"):
            await store.insert("caregiver_patients", link)

        assert store.count("caregiver_patients") == 1

    async def test_update_creating_duplicate_link(self, store):
        caregiver, patient = await self._pair(store)
        other = await store.insert("profiles", {"role": UserRole.CAREGIVER})
        await store.insert(
            "caregiver_patients",
            {"caregiver_id": caregiver["id"], "patient_id": patient["id"]},
        )
        newer = await store.insert(
            "caregiver_patients",
            {"caregiver_id": other["id"], "patient_id": patient["id"]},
        )

        with pytest.raises(StoreError, match="uq_caregiver_patient"):
            await store.update(
                "caregiver_patients",
                {"caregiver_id": caregiver["id"]},
                where={"id": newer["id"]},
            )

        unchanged = await store.select_one("caregiver_patients", id=newer["id"])
        assert unchanged["caregiver_id"] == other["id"]

    async def test_self_link(self, store):
        _, patient = await self._pair(store)

        with pytest.raises(StoreError, match="ck_no_self_link"):
            await store.insert(
                "caregiver_patients",
                {"caregiver_id": patient["id"], "patient_id": patient["id"]},
            )

    async def test_duplicate_email(self, store):
        await store.insert("profiles", {"email": "rose@example.com"})
        taken = await store.insert("profiles", {"email": "sam@example.com"})

        with pytest.raises(StoreError, match="duplicate key"):
            await store.insert("profiles", {"email": "rose@example.com"})
        with pytest.raises(StoreError, match="duplicate key"):
            await store.update(
                "profiles", {"email": "rose@example.com"}, where={"id": taken["id"]}
            )

    async def test_missing_emails_never_collide(self, store):
        await store.insert("profiles", {"email": None})
        await store.insert("profiles", {"email": None})

        assert store.count("profiles") == 2

    async def test_duplicate_primary_key(self, store):
        row = await store.insert("profiles", {})

        with pytest.raises(StoreError, match="profiles_pkey"):
            await store.insert("profiles", {"id": row["id"]})
