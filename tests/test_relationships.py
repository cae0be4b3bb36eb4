"""Tests for the relationship manager."""

import json
import uuid
from datetime import UTC, datetime, timedelta

import pytest

from carecircle.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from carecircle.models.profile import UserRole
from carecircle.schemas.admin import UserSummary
from carecircle.schemas.patient import PatientCreate, PatientUpdate
from carecircle.services.relationships import (
    create_patient,
    delete_patient,
    filter_users,
    grant_caregiver_role,
    list_all_patients_with_assignment,
    list_caregivers,
    list_grantable_users,
    reassign_patient,
    revoke_caregiver_role,
    update_patient,
)


async def _audit_actions(store) -> list[str]:
    rows = await store.select("audit_logs", order_by="created_at")
    return [row["action"] for row in rows]


class TestAdminGate:
    """Admin-only operations refuse everyone else."""

    async def test_caregiver_cannot_list_caregivers(self, seed):
        caregiver = await seed.caregiver()

        with pytest.raises(UnauthorizedError):
            await list_caregivers(seed.ctx(caregiver))

    async def test_allow_listed_patient_is_admin(self, seed):
        """The allow-list wins over a stored patient role."""
        listed = await seed.profile(UserRole.PATIENT, email="Boss@Example.com")

        caregivers = await list_caregivers(
            seed.ctx(listed, admin_emails=["boss@example.com"])
        )

        assert caregivers == []

    async def test_allow_list_does_not_rewrite_role(self, seed):
        listed = await seed.profile(UserRole.PATIENT, email="boss@example.com")

        await list_caregivers(seed.ctx(listed, admin_emails=["boss@example.com"]))

        stored = await seed.store.select_one("profiles", id=listed["id"])
        assert stored["role"] == UserRole.PATIENT


class TestCaregiverGrants:
    """Tests for listing, granting and revoking caregivers."""

    async def test_list_caregivers_with_counts(self, seed, admin):
        now = datetime.now(UTC)
        older = await seed.caregiver(created_at=now - timedelta(days=2))
        newer = await seed.caregiver(created_at=now)
        for _ in range(2):
            patient = await seed.patient()
            await seed.link(older["id"], patient["id"])

        caregivers = await list_caregivers(seed.ctx(admin))

        assert [c.id for c in caregivers] == [newer["id"], older["id"]]
        assert [c.patients_count for c in caregivers] == [0, 2]

    async def test_grantable_users_exclude_caregivers(self, seed, admin):
        await seed.caregiver(email="carol@example.com")
        await seed.profile(email="bob@example.com")
        await seed.profile(email="alice@example.com")

        users = await list_grantable_users(seed.ctx(admin))

        emails = [u.email for u in users]
        assert "carol@example.com" not in emails
        assert emails.index("alice@example.com") < emails.index("bob@example.com")

    async def test_grantable_users_search(self, seed, admin):
        await seed.profile(email="alice@example.com", first_name="Alice", last_name="Ng")
        await seed.profile(email="bob@example.com", first_name="Bob", last_name="Stone")

        users = await list_grantable_users(seed.ctx(admin), search="STONE")

        assert [u.email for u in users] == ["bob@example.com"]

    async def test_grant_is_idempotent_and_audited(self, seed, admin):
        user = await seed.profile()

        first = await grant_caregiver_role(seed.ctx(admin), user["id"])
        second = await grant_caregiver_role(seed.ctx(admin), user["id"])

        assert first.role == UserRole.CAREGIVER
        assert second.role == UserRole.CAREGIVER
        stored = await seed.store.select_one("profiles", id=user["id"])
        assert stored["role"] == UserRole.CAREGIVER
        assert await _audit_actions(seed.store) == ["caregiver.granted", "caregiver.granted"]

    async def test_grant_unknown_user(self, seed, admin):
        with pytest.raises(NotFoundError):
            await grant_caregiver_role(seed.ctx(admin), uuid.uuid4())
        assert seed.store.count("audit_logs") == 0

    async def test_revoke_keeps_links(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()
        link = await seed.link(caregiver["id"], patient["id"])

        result = await revoke_caregiver_role(seed.ctx(admin), caregiver["id"])

        assert result.role == UserRole.PATIENT
        links = await seed.store.select("caregiver_patients")
        assert [row["id"] for row in links] == [link["id"]]
        assert await _audit_actions(seed.store) == ["caregiver.revoked"]


class TestPatientAssignment:
    """Tests for listing and reassigning patients."""

    async def test_list_with_assignment(self, seed, admin):
        caregiver = await seed.caregiver(first_name="Sam", last_name="Lee")
        now = datetime.now(UTC)
        assigned = await seed.patient("Rose", created_at=now)
        unassigned = await seed.patient("Walter", created_at=now - timedelta(days=1))
        await seed.link(caregiver["id"], assigned["id"])

        patients = await list_all_patients_with_assignment(seed.ctx(admin))

        assert [p.id for p in patients] == [assigned["id"], unassigned["id"]]
        assert patients[0].full_name == "Rose Miller"
        assert patients[0].email is not None
        assert patients[0].caregiver.id == caregiver["id"]
        assert patients[0].caregiver.full_name == "Sam Lee"
        assert patients[1].caregiver is None

    async def test_reassign_updates_existing_link_in_place(self, seed, admin):
        old = await seed.caregiver()
        new = await seed.caregiver()
        patient = await seed.patient()
        link = await seed.link(old["id"], patient["id"], relationship="Daughter")

        result = await reassign_patient(seed.ctx(admin), patient["id"], new["id"])

        links = await seed.store.select("caregiver_patients", where={"patient_id": patient["id"]})
        assert len(links) == 1
        assert links[0]["id"] == link["id"]
        assert links[0]["caregiver_id"] == new["id"]
        assert links[0]["relationship"] == "Daughter"
        assert result.link.id == link["id"]

    async def test_reassign_unassigned_inserts_one_link(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()

        result = await reassign_patient(seed.ctx(admin), patient["id"], caregiver["id"])

        assert seed.store.count("caregiver_patients") == 1
        assert result.link.caregiver_id == caregiver["id"]
        assert result.link.is_primary is True

    async def test_reassign_to_nobody_deletes_links(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()
        await seed.link(caregiver["id"], patient["id"])

        result = await reassign_patient(seed.ctx(admin), patient["id"], None)

        assert result.link is None
        assert seed.store.count("caregiver_patients") == 0

    async def test_reassign_is_audited(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()

        await reassign_patient(seed.ctx(admin), patient["id"], caregiver["id"])

        entry = (await seed.store.select("audit_logs"))[0]
        assert entry["action"] == "patient.reassigned"
        assert entry["user_id"] == admin["id"]
        assert entry["ip_address"] == "10.0.0.1"
        assert json.loads(entry["details"])["new_caregiver_id"] == str(caregiver["id"])

    async def test_reassign_unknown_patient(self, seed, admin):
        caregiver = await seed.caregiver()

        with pytest.raises(NotFoundError):
            await reassign_patient(seed.ctx(admin), uuid.uuid4(), caregiver["id"])

    async def test_reassign_unknown_caregiver(self, seed, admin):
        patient = await seed.patient()

        with pytest.raises(NotFoundError):
            await reassign_patient(seed.ctx(admin), patient["id"], uuid.uuid4())

    async def test_reassign_to_self_is_rejected(self, seed, admin):
        patient = await seed.patient()

        with pytest.raises(ValidationError):
            await reassign_patient(seed.ctx(admin), patient["id"], patient["id"])

    @pytest.mark.parametrize("role", [UserRole.PATIENT, UserRole.ADMIN])
    async def test_reassign_to_non_caregiver_is_rejected(self, seed, admin, role):
        patient = await seed.patient()
        target = await seed.profile(role)

        with pytest.raises(ValidationError, match="caregivers"):
            await reassign_patient(seed.ctx(admin), patient["id"], target["id"])

        assert seed.store.count("caregiver_patients") == 0
        assert (await list_all_patients_with_assignment(seed.ctx(admin)))[0].caregiver is None

    async def test_reassign_to_caregiver_holding_older_link(self, seed, admin):
        now = datetime.now(UTC)
        former = await seed.caregiver()
        current = await seed.caregiver()
        patient = await seed.patient()
        await seed.link(former["id"], patient["id"], created_at=now - timedelta(days=2))
        newest = await seed.link(
            current["id"], patient["id"], relationship="Son", created_at=now
        )

        result = await reassign_patient(seed.ctx(admin), patient["id"], former["id"])

        links = await seed.store.select("caregiver_patients", where={"patient_id": patient["id"]})
        assert [(link["id"], link["caregiver_id"]) for link in links] == [
            (newest["id"], former["id"])
        ]
        assert links[0]["relationship"] == "Son"
        assert result.link.id == newest["id"]
        counts = {c.id: c.patients_count for c in await list_caregivers(seed.ctx(admin))}
        assert counts == {former["id"]: 1, current["id"]: 0}

    async def test_reassign_to_current_caregiver_writes_nothing(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()
        link = await seed.link(caregiver["id"], patient["id"])

        result = await reassign_patient(seed.ctx(admin), patient["id"], caregiver["id"])

        [stored] = await seed.store.select("caregiver_patients")
        assert stored == link
        assert result.link.id == link["id"]


class TestDeletePatient:
    """Tests for delete_patient."""

    async def test_cascades_to_dependents(self, seed, admin):
        caregiver = await seed.caregiver()
        patient = await seed.patient()
        await seed.link(caregiver["id"], patient["id"])
        await seed.rows("tasks", patient["id"], {"title": "Walk"})
        await seed.rows(
            "patient_notes", patient["id"], {"caregiver_id": caregiver["id"], "note": "Hi"}
        )

        await delete_patient(seed.ctx(admin), patient["id"])

        for table in ("patients", "caregiver_patients", "tasks", "patient_notes"):
            assert seed.store.count(table) == 0
        assert await seed.store.select_one("profiles", id=patient["id"]) is None
        assert await seed.store.select_one("profiles", id=caregiver["id"]) is not None
        assert await _audit_actions(seed.store) == ["patient.deleted"]

    async def test_unknown_patient(self, seed, admin):
        with pytest.raises(NotFoundError):
            await delete_patient(seed.ctx(admin), uuid.uuid4())


class TestCreatePatient:
    """Tests for create_patient."""

    async def test_creates_profile_patient_and_link(self, seed):
        caregiver = await seed.caregiver()
        data = PatientCreate(
            first_name=" Rose ",
            last_name="Miller",
            email="rose@example.com",
            emergency_contact={"name": "Anna", "phone": "555-0101"},
            preferences={"audio_enabled": False},
        )

        profile = await create_patient(seed.ctx(caregiver), data, caregiver["id"])

        assert profile.first_name == "Rose"
        assert profile.emergency_contact.name == "Anna"
        assert profile.preferences.audio_enabled is False
        stored = await seed.store.select_one("profiles", id=profile.id)
        assert stored["role"] == UserRole.PATIENT
        assert stored["email"] == "rose@example.com"
        link = await seed.store.select_one("caregiver_patients", patient_id=profile.id)
        assert link["caregiver_id"] == caregiver["id"]
        assert link["relationship"] == "Primary Caregiver"
        assert link["is_primary"] is True

    async def test_blank_name_writes_nothing(self, seed):
        caregiver = await seed.caregiver()

        with pytest.raises(ValidationError):
            await create_patient(
                seed.ctx(caregiver), PatientCreate(first_name="Rose", last_name="  "), caregiver["id"]
            )
        assert seed.store.count("patients") == 0

    async def test_patient_role_cannot_create(self, seed):
        user = await seed.profile()

        with pytest.raises(UnauthorizedError):
            await create_patient(
                seed.ctx(user), PatientCreate(first_name="A", last_name="B"), user["id"]
            )

    async def test_caregiver_cannot_create_for_another(self, seed):
        caregiver = await seed.caregiver()
        other = await seed.caregiver()

        with pytest.raises(UnauthorizedError):
            await create_patient(
                seed.ctx(caregiver), PatientCreate(first_name="A", last_name="B"), other["id"]
            )


class TestUpdatePatient:
    """Tests for update_patient."""

    async def test_linked_caregiver_updates_supplied_fields(self, seed):
        caregiver = await seed.caregiver()
        patient = await seed.patient(location="Maple House")
        await seed.link(caregiver["id"], patient["id"])

        profile = await update_patient(
            seed.ctx(caregiver),
            patient["id"],
            PatientUpdate(preferred_name="Rosie", preferences={"tone": "upbeat"}),
        )

        assert profile.preferred_name == "Rosie"
        assert profile.preferences.tone == "upbeat"
        assert profile.location == "Maple House"

    async def test_name_change_syncs_profile(self, seed, admin):
        patient = await seed.patient()

        await update_patient(seed.ctx(admin), patient["id"], PatientUpdate(last_name="Grant"))

        stored = await seed.store.select_one("profiles", id=patient["id"])
        assert stored["last_name"] == "Grant"

    async def test_unlinked_caregiver_is_refused(self, seed):
        caregiver = await seed.caregiver()
        patient = await seed.patient()

        with pytest.raises(UnauthorizedError):
            await update_patient(
                seed.ctx(caregiver), patient["id"], PatientUpdate(location="Home")
            )

    async def test_unknown_patient(self, seed, admin):
        with pytest.raises(NotFoundError):
            await update_patient(seed.ctx(admin), uuid.uuid4(), PatientUpdate(location="Home"))


def test_filter_users_matches_name_or_email():
    users = [
        UserSummary(
            id=uuid.uuid4(),
            email="alice@example.com",
            first_name="Alice",
            last_name="Ng",
            full_name="Alice Ng",
            role=UserRole.PATIENT,
        ),
        UserSummary(
            id=uuid.uuid4(),
            email=None,
            first_name="Bob",
            last_name=None,
            full_name="Bob",
            role=UserRole.PATIENT,
        ),
    ]

    assert [u.full_name for u in filter_users(users, "ALICE@")] == ["Alice Ng"]
    assert [u.full_name for u in filter_users(users, "bo")] == ["Bob"]
    assert filter_users(users, None) == users
    assert filter_users(users, "   ") == users
