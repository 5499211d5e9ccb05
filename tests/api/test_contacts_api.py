"""Contacts endpoints: CRUD, validation and JSON:API document shape.

Invariants:
    - POST returns 201 with Location and the created resource
    - Missing/blank name_first or name_last → 422, one error per field
    - DELETE returns 204; the contact and its phone numbers are gone afterwards
"""

import pytest
from sqlalchemy import func, select

from addressbook.models.phone_number import PhoneNumber


def contact_document(**attributes) -> dict:
    return {"data": {"type": "contacts", "attributes": attributes}}


async def test_create_contact_returns_201_with_attributes(client):
    res = await client.post(
        "/api/v1/contacts",
        json=contact_document(name_first="Ada", name_last="Lovelace"),
    )

    assert res.status_code == 201
    assert res.headers["content-type"].startswith("application/vnd.api+json")
    data = res.json()["data"]
    assert data["type"] == "contacts"
    assert data["attributes"]["name_first"] == "Ada"
    assert data["attributes"]["name_last"] == "Lovelace"
    assert data["relationships"]["phone_numbers"]["data"] == []
    assert res.headers["location"] == f"http://test/api/v1/contacts/{data['id']}"


async def test_create_then_fetch_round_trips_attributes(client):
    attributes = {
        "name_first": "Grace",
        "name_last": "Hopper",
        "email": "grace@example.com",
        "twitter": "@grace",
    }
    created = await client.post("/api/v1/contacts", json=contact_document(**attributes))
    contact_id = created.json()["data"]["id"]

    res = await client.get(f"/api/v1/contacts/{contact_id}")

    assert res.status_code == 200
    fetched = res.json()["data"]["attributes"]
    for key, value in attributes.items():
        assert fetched[key] == value
    assert fetched["created_at"] is not None
    assert fetched["updated_at"] is not None


async def test_create_missing_name_last_returns_422(client):
    res = await client.post(
        "/api/v1/contacts", json=contact_document(name_first="Ada"),
    )

    assert res.status_code == 422
    errors = res.json()["errors"]
    assert len(errors) == 1
    assert errors[0]["status"] == "422"
    assert errors[0]["source"]["pointer"] == "/data/attributes/name_last"
    assert "name_last" in errors[0]["detail"]


async def test_create_missing_both_names_reports_each(client):
    res = await client.post(
        "/api/v1/contacts", json=contact_document(email="x@example.com"),
    )

    assert res.status_code == 422
    pointers = [e["source"]["pointer"] for e in res.json()["errors"]]
    assert pointers == [
        "/data/attributes/name_first",
        "/data/attributes/name_last",
    ]


async def test_create_blank_name_is_rejected(client):
    res = await client.post(
        "/api/v1/contacts",
        json=contact_document(name_first="   ", name_last="Lovelace"),
    )
    assert res.status_code == 422


async def test_failed_create_persists_nothing(client):
    await client.post("/api/v1/contacts", json=contact_document(name_first="Ada"))

    res = await client.get("/api/v1/contacts")
    assert res.json()["data"] == []


async def test_create_with_wrong_type_returns_409(client):
    res = await client.post(
        "/api/v1/contacts",
        json={"data": {"type": "phone_numbers", "attributes": {"name": "cell"}}},
    )
    assert res.status_code == 409
    assert res.json()["errors"][0]["source"]["pointer"] == "/data/type"


async def test_create_with_client_id_is_rejected(client):
    document = contact_document(name_first="Ada", name_last="Lovelace")
    document["data"]["id"] = "99"
    res = await client.post("/api/v1/contacts", json=document)
    assert res.status_code == 400


async def test_create_with_unknown_attribute_is_rejected(client):
    res = await client.post(
        "/api/v1/contacts",
        json=contact_document(name_first="Ada", name_last="Lovelace", age=36),
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["source"]["pointer"] == "/data/attributes/age"


async def test_create_with_read_only_attribute_is_rejected(client):
    res = await client.post(
        "/api/v1/contacts",
        json=contact_document(
            name_first="Ada", name_last="Lovelace", created_at="2020-01-01",
        ),
    )
    assert res.status_code == 400


async def test_create_without_data_returns_400(client):
    res = await client.post("/api/v1/contacts", json={"name_first": "Ada"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["code"] == "INVALID_DOCUMENT"


async def test_create_with_phone_numbers_linkage(client, seed_contact):
    phone_ids = [p.id for p in seed_contact.phone_numbers]
    document = contact_document(name_first="Ada", name_last="Lovelace")
    document["data"]["relationships"] = {
        "phone_numbers": {
            "data": [{"type": "phone_numbers", "id": str(i)} for i in phone_ids],
        },
    }

    res = await client.post("/api/v1/contacts", json=document)

    assert res.status_code == 201
    linkage = res.json()["data"]["relationships"]["phone_numbers"]["data"]
    assert [item["id"] for item in linkage] == [str(i) for i in phone_ids]


async def test_fetch_contact_has_phone_number_linkage(client, seed_contact):
    res = await client.get(f"/api/v1/contacts/{seed_contact.id}")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["id"] == str(seed_contact.id)
    assert data["links"]["self"] == f"http://test/api/v1/contacts/{seed_contact.id}"
    relationship = data["relationships"]["phone_numbers"]
    assert relationship["data"] == [
        {"type": "phone_numbers", "id": str(p.id)} for p in seed_contact.phone_numbers
    ]
    assert relationship["links"]["related"].endswith(
        f"/contacts/{seed_contact.id}/phone_numbers",
    )


async def test_fetch_unknown_contact_returns_404(client):
    res = await client.get("/api/v1/contacts/999")
    assert res.status_code == 404
    assert res.json()["errors"][0]["status"] == "404"


async def test_fetch_non_numeric_id_returns_404(client):
    res = await client.get("/api/v1/contacts/abc")
    assert res.status_code == 404


@pytest.mark.parametrize("resource_id", ["99999999999999999999999", "9223372036854775808"])
async def test_fetch_id_past_64_bit_range_returns_404(client, resource_id):
    res = await client.get(f"/api/v1/contacts/{resource_id}")

    assert res.status_code == 404
    assert res.json()["errors"][0]["status"] == "404"


@pytest.mark.parametrize("resource_id", ["1_000", "+1", " 1"])
async def test_fetch_id_that_is_not_plain_digits_returns_404(client, seed_contacts, resource_id):
    res = await client.get(f"/api/v1/contacts/{resource_id}")
    assert res.status_code == 404


async def test_update_id_past_64_bit_range_returns_404(client):
    huge = "99999999999999999999999"
    res = await client.patch(
        f"/api/v1/contacts/{huge}",
        json={"data": {"type": "contacts", "id": huge, "attributes": {}}},
    )
    assert res.status_code == 404


async def test_delete_id_past_64_bit_range_returns_404(client):
    res = await client.delete("/api/v1/contacts/99999999999999999999999")
    assert res.status_code == 404


async def test_update_contact_changes_attributes(client, seed_contact):
    res = await client.patch(
        f"/api/v1/contacts/{seed_contact.id}",
        json={
            "data": {
                "type": "contacts",
                "id": str(seed_contact.id),
                "attributes": {"email": "new@example.com"},
            },
        },
    )

    assert res.status_code == 200
    attributes = res.json()["data"]["attributes"]
    assert attributes["email"] == "new@example.com"
    assert attributes["name_first"] == seed_contact.name_first


async def test_put_is_accepted_as_update(client, seed_contact):
    res = await client.put(
        f"/api/v1/contacts/{seed_contact.id}",
        json={
            "data": {
                "type": "contacts",
                "id": seed_contact.id,
                "attributes": {"twitter": "@changed"},
            },
        },
    )
    assert res.status_code == 200
    assert res.json()["data"]["attributes"]["twitter"] == "@changed"


async def test_update_blanking_name_returns_422(client, seed_contact):
    res = await client.patch(
        f"/api/v1/contacts/{seed_contact.id}",
        json={
            "data": {
                "type": "contacts",
                "id": str(seed_contact.id),
                "attributes": {"name_first": None},
            },
        },
    )
    assert res.status_code == 422

    fetched = await client.get(f"/api/v1/contacts/{seed_contact.id}")
    assert fetched.json()["data"]["attributes"]["name_first"] == seed_contact.name_first


async def test_update_with_mismatched_id_returns_400(client, seed_contact):
    res = await client.patch(
        f"/api/v1/contacts/{seed_contact.id}",
        json={"data": {"type": "contacts", "id": "12345", "attributes": {}}},
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["source"]["pointer"] == "/data/id"


async def test_update_unknown_contact_returns_404(client):
    res = await client.patch(
        "/api/v1/contacts/999",
        json={"data": {"type": "contacts", "id": "999", "attributes": {}}},
    )
    assert res.status_code == 404


async def test_update_replaces_phone_numbers_linkage(client, seed_contacts, test_db):
    first, second = seed_contacts[0], seed_contacts[1]
    moved = second.phone_numbers[0]
    kept = first.phone_numbers[0]
    dropped = first.phone_numbers[1]

    res = await client.patch(
        f"/api/v1/contacts/{first.id}",
        json={
            "data": {
                "type": "contacts",
                "id": str(first.id),
                "relationships": {
                    "phone_numbers": {
                        "data": [
                            {"type": "phone_numbers", "id": str(kept.id)},
                            {"type": "phone_numbers", "id": str(moved.id)},
                        ],
                    },
                },
            },
        },
    )

    assert res.status_code == 200
    linkage = res.json()["data"]["relationships"]["phone_numbers"]["data"]
    assert {item["id"] for item in linkage} == {str(kept.id), str(moved.id)}
    result = await test_db.execute(
        select(PhoneNumber.contact_id).where(PhoneNumber.id == dropped.id),
    )
    assert result.scalar_one() is None


async def test_update_with_unknown_phone_number_returns_404(client, seed_contact):
    res = await client.patch(
        f"/api/v1/contacts/{seed_contact.id}",
        json={
            "data": {
                "type": "contacts",
                "id": str(seed_contact.id),
                "relationships": {
                    "phone_numbers": {"data": [{"type": "phone_numbers", "id": "999"}]},
                },
            },
        },
    )
    assert res.status_code == 404
    error = res.json()["errors"][0]
    assert error["source"]["pointer"] == "/data/relationships/phone_numbers"


async def test_delete_then_fetch_returns_404(client, seed_contact):
    res = await client.delete(f"/api/v1/contacts/{seed_contact.id}")
    assert res.status_code == 204

    res = await client.get(f"/api/v1/contacts/{seed_contact.id}")
    assert res.status_code == 404


async def test_delete_removes_phone_numbers(client, seed_contact, test_db):
    await client.delete(f"/api/v1/contacts/{seed_contact.id}")

    result = await test_db.execute(
        select(func.count())
        .select_from(PhoneNumber)
        .where(PhoneNumber.contact_id == seed_contact.id),
    )
    assert result.scalar_one() == 0


async def test_delete_unknown_contact_returns_404(client):
    res = await client.delete("/api/v1/contacts/999")
    assert res.status_code == 404


async def test_contacts_reject_any_filter(client, seed_contacts):
    res = await client.get("/api/v1/contacts", params={"filter[name_first]": "First0"})
    assert res.status_code == 400
    error = res.json()["errors"][0]
    assert error["code"] == "FILTER_NOT_ALLOWED"
    assert error["source"]["parameter"] == "filter[name_first]"


async def test_include_phone_numbers(client, seed_contact):
    res = await client.get(
        f"/api/v1/contacts/{seed_contact.id}", params={"include": "phone_numbers"},
    )

    assert res.status_code == 200
    included = res.json()["included"]
    assert {(r["type"], r["id"]) for r in included} == {
        ("phone_numbers", str(p.id)) for p in seed_contact.phone_numbers
    }


async def test_sparse_fieldset_limits_attributes(client, seed_contact):
    res = await client.get(
        f"/api/v1/contacts/{seed_contact.id}",
        params={"fields[contacts]": "name_last"},
    )

    data = res.json()["data"]
    assert data["attributes"] == {"name_last": seed_contact.name_last}
    assert data["relationships"] == {}


async def test_sort_descending_by_name(client, seed_contacts):
    res = await client.get(
        "/api/v1/contacts", params={"sort": "-name_last", "page[size]": "3"},
    )

    names = [r["attributes"]["name_last"] for r in res.json()["data"]]
    assert names == ["Last6", "Last5", "Last4"]


async def test_sort_by_unknown_field_returns_400(client):
    res = await client.get("/api/v1/contacts", params={"sort": "shoe_size"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["source"]["parameter"] == "sort"
