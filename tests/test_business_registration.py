import pytest

from core.errors import InvalidStateError
from models.orm_user import UserEntity
from services import business_service
from services.listing_state import Actor

APPLICATION = {
    "company_name": "Ege Pansiyon Ltd.",
    "tax_id": "1234567890",
    "business_address": "Gümbet Mah. 12, Bodrum",
    "contact_phone": "+90 252 000 00 00",
    "contact_email": "info@egepansiyon.example.com",
    "business_type": "guesthouse",
    "documents": ["vergi-levhasi.pdf"],
}


@pytest.fixture()
def application(db_session, traveler):
    return business_service.apply(db_session, traveler, APPLICATION)


def test_application_starts_pending(application, traveler):
    assert application.status == "pending"
    assert application.user_id == traveler.id
    assert application.documents == ["vergi-levhasi.pdf"]
    assert traveler.role == "traveler"


def test_second_application_while_pending_is_refused(db_session, traveler, application):
    with pytest.raises(InvalidStateError) as exc:
        business_service.apply(db_session, traveler, APPLICATION)

    assert exc.value.details["status"] == "pending"


def test_approval_grants_owner_role(db_session, admin, traveler, application):
    registration = business_service.approve(db_session, application.id, Actor.from_user(admin))

    assert registration.status == "approved"
    assert registration.reviewed_by_id == admin.id
    assert registration.reviewed_at is not None
    assert db_session.get(UserEntity, traveler.id).role == "owner"


def test_rejection_keeps_role_and_allows_reapplying(db_session, admin, traveler, application):
    registration = business_service.reject(db_session, application.id, Actor.from_user(admin), "  Eksik belge ")

    assert registration.status == "rejected"
    assert registration.rejection_reason == "Eksik belge"
    assert db_session.get(UserEntity, traveler.id).role == "traveler"

    again = business_service.apply(db_session, traveler, {**APPLICATION, "documents": ["imza-sirkusu.pdf"]})

    assert again.id == application.id
    assert again.status == "pending"
    assert again.rejection_reason is None
    assert again.documents == ["imza-sirkusu.pdf"]


def test_only_pending_registrations_are_reviewed(db_session, admin, application):
    business_service.approve(db_session, application.id, Actor.from_user(admin))

    with pytest.raises(InvalidStateError) as exc:
        business_service.reject(db_session, application.id, Actor.from_user(admin), "Geç kaldı")

    assert exc.value.details["status"] == "approved"


def test_traveler_applies_and_admin_approves_over_http(client, login_as, traveler, admin):
    login_as(traveler)
    r = client.post("/api/business/register", json=APPLICATION)
    assert r.status_code == 201, r.text
    registration_id = r.json()["id"]

    assert client.get("/api/owner/places").status_code == 403
    assert client.get("/api/business/status").json()["status"] == "pending"

    login_as(admin)
    page = client.get("/api/admin/business-registrations", params={"status": "pending"}).json()
    assert page["total"] == 1
    assert [i["id"] for i in page["items"]] == [registration_id]

    r = client.put(f"/api/admin/business-registrations/{registration_id}/approve")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "approved"

    r = client.put(f"/api/admin/business-registrations/{registration_id}/approve")
    assert r.status_code == 409
    assert r.json()["kind"] == "INVALID_STATE"


def test_invalid_application_is_rejected_by_validation(client, login_as, traveler):
    login_as(traveler)

    r = client.post("/api/business/register", json={**APPLICATION, "tax_id": "123"})

    assert r.status_code == 422


def test_registrations_are_admin_only(client, login_as, owner):
    login_as(owner)

    r = client.get("/api/admin/business-registrations")

    assert r.status_code == 403
    assert r.json()["kind"] == "FORBIDDEN"
