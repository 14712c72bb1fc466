from bson import ObjectId

from app.core.crypto import decrypt, encrypt
from app.models.employee import Employee
from app.models.users import User

from tests.conftest import API


async def _list(client, headers, **params):
    resp = await client.get(f"{API}/employees/", params=params, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def test_requires_bearer_token(client, db):
    resp = await client.get(f"{API}/employees/")
    assert resp.status_code in (401, 403)


async def test_create_then_detail_round_trips(client, admin_headers, create_employee, lookups):
    created = await create_employee()

    stored = await Employee.get(created["_id"])
    assert stored.pin != "4321"
    assert decrypt(stored.pin) == "4321"
    assert stored.full_name == "Jane Doe"
    assert stored.employee_status == "Active"
    assert stored.face_info.name == created["_id"]
    assert stored.face_info.descriptors == [[0.1, 0.25, -0.5]]
    assert "pin" not in created

    resp = await client.get(f"{API}/employees/{created['_id']}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["pin"] == "4321"
    assert data["email"] == "jane.doe@example.com"
    assert data["phone_number"] == "9171234567"
    assert data["department"]["department_name"] == "Engineering"
    assert data["company"]["company_name"] == "Acme Corp"
    assert data["job_title"]["job_title"] == "Software Engineer"
    assert data["leave_group"]["group_name"] == "Regular"


async def test_create_rejects_missing_face_descriptor(client, admin_headers, employee_payload):
    body = employee_payload()
    del body["faceDescriptor"]
    resp = await client.post(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Face descriptor is invalid or missing"
    assert await Employee.find_all().count() == 0


async def test_create_rejects_non_array_face_descriptor(client, admin_headers, employee_payload):
    for bad in ("abc", {"x": 1}, [0.1, "a"], 7):
        resp = await client.post(
            f"{API}/employees/", json=employee_payload(faceDescriptor=bad), headers=admin_headers
        )
        assert resp.status_code == 400, bad
        assert resp.json()["detail"] == "Face descriptor is invalid or missing"
    assert await Employee.find_all().count() == 0


async def test_create_rejects_malformed_emails(client, admin_headers, employee_payload):
    resp = await client.post(f"{API}/employees/", json=employee_payload(email="not-an-email"), headers=admin_headers)
    assert resp.status_code == 422

    resp = await client.post(
        f"{API}/employees/", json=employee_payload(companyEmail="nope"), headers=admin_headers
    )
    assert resp.status_code == 422
    assert await Employee.find_all().count() == 0


async def test_create_rejects_duplicate_email(client, admin_headers, create_employee, employee_payload):
    await create_employee()
    resp = await client.post(f"{API}/employees/", json=employee_payload(), headers=admin_headers)
    assert resp.status_code == 400


async def test_mutations_need_admin(client, staff_headers, employee_payload):
    resp = await client.post(f"{API}/employees/", json=employee_payload(), headers=staff_headers)
    assert resp.status_code == 403


async def test_detail_invalid_and_missing_ids(client, admin_headers):
    resp = await client.get(f"{API}/employees/not-an-id", headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.get(f"{API}/employees/{ObjectId()}", headers=admin_headers)
    assert resp.status_code == 404


async def test_detail_with_undecryptable_pin_returns_null(client, admin_headers, create_employee):
    created = await create_employee()
    stored = await Employee.get(created["_id"])
    await stored.set({"pin": encrypt("4321", secret="a rotated-away key")})

    resp = await client.get(f"{API}/employees/{created['_id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["pin"] is None


async def test_detail_keeps_row_with_missing_lookup(client, admin_headers, create_employee):
    created = await create_employee(leaveGroup=str(ObjectId()))

    resp = await client.get(f"{API}/employees/{created['_id']}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["leave_group"] is None
    assert data["department"]["department_name"] == "Engineering"


async def test_list_hides_super_admin_employee_and_archived(client, admin_headers, super_admin, create_employee):
    own = await create_employee(firstName="Root", lastName="Admin", email="root.emp@example.com")
    archived = await create_employee(firstName="Old", lastName="Timer", email="old@example.com")
    visible = await create_employee()

    await super_admin.set({User.employee: ObjectId(own["_id"])})
    await client.post(f"{API}/employees/archive", json={"employeeId": archived["_id"]}, headers=admin_headers)

    body = await _list(client, admin_headers)
    ids = [row["_id"] for row in body["list"]]
    assert ids == [visible["_id"]]
    assert body["total"] == 1
    assert body["message"] == "Employees fetched successfully"
    assert all("pin" not in row for row in body["list"])


async def test_list_fails_closed_without_super_admin(client, staff_headers, db):
    resp = await client.get(f"{API}/employees/", headers=staff_headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


async def test_list_total_ignores_pagination(client, admin_headers, create_employee):
    for i in range(5):
        await create_employee(firstName=f"Emp{i}", email=f"emp{i}@example.com")

    first = await _list(client, admin_headers, pageIndex=1, pageSize=2)
    last = await _list(client, admin_headers, pageIndex=3, pageSize=2)
    beyond = await _list(client, admin_headers, pageIndex=9, pageSize=2)

    assert first["total"] == last["total"] == beyond["total"] == 5
    assert [r["full_name"] for r in first["list"]] == ["Emp0 Doe", "Emp1 Doe"]
    assert [r["full_name"] for r in last["list"]] == ["Emp4 Doe"]
    assert beyond["list"] == []


async def test_list_query_matches_joined_department(client, admin_headers, create_employee, lookups):
    engineer = await create_employee()
    await create_employee(
        firstName="Frank", email="frank@example.com", department=str(lookups["finance"].id)
    )

    body = await _list(client, admin_headers, query="engineering")
    assert [r["_id"] for r in body["list"]] == [engineer["_id"]]
    assert body["total"] == 1
    assert body["list"][0]["department"]["department_name"] == "Engineering"


async def test_list_query_is_literal_text(client, admin_headers, create_employee):
    await create_employee()
    body = await _list(client, admin_headers, query=".*")
    assert body["total"] == 0


async def test_list_sorting(client, admin_headers, create_employee):
    await create_employee(firstName="Bea", email="bea@example.com")
    await create_employee(firstName="Ann", email="ann@example.com")
    await create_employee(firstName="Cid", email="cid@example.com")

    default = await _list(client, admin_headers)
    assert [r["first_name"] for r in default["list"]] == ["Ann", "Bea", "Cid"]

    desc = await _list(client, admin_headers, sortKey="email", sortOrder="desc")
    assert [r["first_name"] for r in desc["list"]] == ["Cid", "Bea", "Ann"]

    resp = await client.get(f"{API}/employees/", params={"sortKey": "pin"}, headers=admin_headers)
    assert resp.status_code == 400


async def test_all_active_employees(client, admin_headers, super_admin, create_employee):
    await create_employee()
    own = await create_employee(firstName="Root", lastName="Admin", email="root.emp@example.com")
    await super_admin.set({User.employee: ObjectId(own["_id"])})
    archived = await create_employee(firstName="Old", email="old@example.com")
    await client.post(f"{API}/employees/archive", json={"employeeId": archived["_id"]}, headers=admin_headers)

    resp = await client.get(f"{API}/employees/all", headers=admin_headers)
    assert resp.status_code == 200
    assert [r["full_name"] for r in resp.json()["employeeData"]] == ["Jane Doe"]


async def test_update_replaces_fields_and_reencrypts_pin(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    before = await Employee.get(created["_id"])

    body = employee_payload(_id=created["_id"], firstName="Janet", pin="4321", faceDescriptor=[0.9, 0.8])
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 200, resp.text

    after = await Employee.get(created["_id"])
    assert after.full_name == "Janet Doe"
    assert after.pin != before.pin
    assert decrypt(after.pin) == "4321"
    assert after.face_info.name == created["_id"]
    assert after.face_info.descriptors == [[0.9, 0.8]]


async def test_update_cascades_email_to_linked_user(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    linked = User(
        email="jane.doe@example.com",
        hashed_password="sha256$x$y",
        employee=ObjectId(created["_id"]),
    )
    await linked.insert()

    body = employee_payload(_id=created["_id"], email="jane.new@example.com")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 200

    refreshed = await User.get(linked.id)
    assert refreshed.email == "jane.new@example.com"


async def test_update_without_linked_user(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    body = employee_payload(_id=created["_id"], email="jane.new@example.com")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["employee"]["email"] == "jane.new@example.com"


async def test_update_invalid_and_missing_ids(client, admin_headers, employee_payload):
    resp = await client.put(f"{API}/employees/", json=employee_payload(_id="nope"), headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.put(f"{API}/employees/", json=employee_payload(_id=str(ObjectId())), headers=admin_headers)
    assert resp.status_code == 404


async def test_archive_flips_status_only(client, admin_headers, create_employee):
    created = await create_employee()
    before = await Employee.get(created["_id"])

    resp = await client.post(f"{API}/employees/archive", json={"employeeId": created["_id"]}, headers=admin_headers)
    assert resp.status_code == 200

    after = await Employee.get(created["_id"])
    assert after.employee_status == "Archived"
    assert after.model_dump(exclude={"employee_status", "revision_id"}) == before.model_dump(
        exclude={"employee_status", "revision_id"}
    )


async def test_archive_errors(client, admin_headers):
    resp = await client.post(f"{API}/employees/archive", json={}, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/employees/archive", json={"employeeId": "bad"}, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.post(f"{API}/employees/archive", json={"employeeId": str(ObjectId())}, headers=admin_headers)
    assert resp.status_code == 404


async def test_batch_delete(client, admin_headers, create_employee):
    a = await create_employee(email="a@example.com")
    b = await create_employee(email="b@example.com")

    resp = await client.post(
        f"{API}/employees/delete", json={"employeeIds": [a["_id"], b["_id"]]}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["deleted"] == 2
    assert await Employee.find_all().count() == 0


async def test_batch_delete_with_missing_id_deletes_nothing(client, admin_headers, create_employee):
    a = await create_employee(email="a@example.com")
    missing = str(ObjectId())
    c = await create_employee(email="c@example.com")

    resp = await client.post(
        f"{API}/employees/delete", json={"employeeIds": [a["_id"], missing, c["_id"]]}, headers=admin_headers
    )
    assert resp.status_code == 404
    assert missing in resp.json()["detail"]

    # A precedes the missing id in the batch and is still present
    assert await Employee.get(a["_id"]) is not None
    assert await Employee.get(c["_id"]) is not None


async def test_face_info_export(client, admin_headers, create_employee):
    created = await create_employee()
    await create_employee(firstName="Empty", email="empty@example.com", faceDescriptor=[])
    await Employee.find_one(Employee.email == "empty@example.com").update(
        {"$set": {"face_info.descriptors": []}}
    )

    resp = await client.get(f"{API}/employees/face-info", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "Jane Doe": {"name": created["_id"], "descriptors": [[0.1, 0.25, -0.5]]},
    }


async def test_fields_lists_lookup_tables(client, admin_headers, lookups):
    resp = await client.get(f"{API}/employees/fields", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [c["company_name"] for c in body["company"]] == ["Acme Corp"]
    assert sorted(d["department_name"] for d in body["department"]) == ["Engineering", "Finance"]
    assert body["jobTitle"][0]["job_title"] == "Software Engineer"
    assert body["leaveGroup"][0]["group_name"] == "Regular"


async def test_update_without_status_keeps_archived(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    await client.post(f"{API}/employees/archive", json={"employeeId": created["_id"]}, headers=admin_headers)

    body = employee_payload(_id=created["_id"], firstName="Janet")
    del body["employmentStatus"]
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 200, resp.text

    after = await Employee.get(created["_id"])
    assert after.employee_status == "Archived"
    assert after.full_name == "Janet Doe"


async def test_update_rejects_malformed_email_before_writing(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    linked = User(email="jane.doe@example.com", hashed_password="sha256$x$y", employee=ObjectId(created["_id"]))
    await linked.insert()

    body = employee_payload(_id=created["_id"], email="not-an-email", firstName="Changed")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 422

    stored = await Employee.get(created["_id"])
    assert stored.email == "jane.doe@example.com"
    assert stored.first_name == "Jane"
    assert (await User.get(linked.id)).email == "jane.doe@example.com"


async def test_update_rejects_bad_face_descriptor(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    body = employee_payload(_id=created["_id"], faceDescriptor="abc")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Face descriptor is invalid or missing"


async def test_update_email_sync_failure_is_server_error(client, admin_headers, create_employee, employee_payload):
    created = await create_employee()
    linked = User(email="jane.doe@example.com", hashed_password="sha256$x$y", employee=ObjectId(created["_id"]))
    await linked.insert()

    # root@example.com already belongs to the SuperAdmin login
    body = employee_payload(_id=created["_id"], email="root@example.com")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"

    # the employee write happened before the linked login was touched
    assert (await Employee.get(created["_id"])).email == "root@example.com"
    assert (await User.get(linked.id)).email == "jane.doe@example.com"


async def test_session_survives_linked_email_change(client, admin_headers, super_admin, create_employee, employee_payload):
    own = await create_employee(firstName="Root", lastName="Admin", email="root.emp@example.com")
    await super_admin.set({User.employee: ObjectId(own["_id"])})

    body = employee_payload(_id=own["_id"], firstName="Root", lastName="Admin", email="root.new@example.com")
    resp = await client.put(f"{API}/employees/", json=body, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert (await User.get(super_admin.id)).email == "root.new@example.com"

    resp = await client.get(f"{API}/auth/me", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "root.new@example.com"
