from fastapi.testclient import TestClient

from stayrate.main import app


def test_healthz():
    assert TestClient(app).get("/healthz").json() == {"status": "ok"}


def test_requests_need_a_valid_property_token(client):
    assert client.get("/api/v1/room-types", headers={"X-Property-Token": "forged"}).status_code == 401
    anonymous = TestClient(app)
    assert anonymous.get("/api/v1/room-types").status_code == 401


def test_property_registration_returns_a_usable_token(client):
    created = client.post("/api/v1/properties", json={"name": "Harbor Lodge"}, headers={"X-Property-Token": ""})
    assert created.status_code == 201
    token = created.json()["token"]
    listed = client.get("/api/v1/room-types", headers={"X-Property-Token": token})
    assert listed.status_code == 200
    assert listed.json() == []


def test_catalog(client, hotel):
    types = client.get("/api/v1/room-types").json()
    assert [t["name"] for t in types] == ["Deluxe", "Suite"]
    assert types[0]["priceModel"] == "perRoom"
    assert types[0]["totalInventory"] == 10

    body = {"name": "Family", "totalInventory": 2, "priceModel": "perPerson", "adultRate": 120, "childRate": 60}
    created = client.post("/api/v1/room-types", json=body)
    assert created.status_code == 201
    assert client.post("/api/v1/room-types", json=body).json()["error"] == "conflict"

    room = client.post("/api/v1/rooms", json={"roomTypeId": created.json()["id"], "roomNumber": "301"})
    assert room.status_code == 201
    assert room.json()["status"] == "clean"
    rooms = client.get("/api/v1/rooms", params={"room_type_id": created.json()["id"]}).json()
    assert [r["roomNumber"] for r in rooms] == ["301"]


def test_availability_check(client, hotel):
    client.post("/api/v1/reservations", json={
        "roomTypeId": hotel.deluxe.id,
        "guestName": "Tester",
        "checkInDate": "2024-01-01",
        "checkOutDate": "2024-01-03",
        "numberOfRooms": 4,
    })
    resp = client.post("/api/v1/availability/check", json={
        "roomTypeId": hotel.deluxe.id,
        "checkInDate": "2024-01-01",
        "checkOutDate": "2024-01-04",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["dailyAvailability"] == {"2024-01-01": 6, "2024-01-02": 6, "2024-01-03": 10}
    assert data["minAvailableCount"] == 6
    assert data["overallAvailable"] is True
    assert data["overbooked"] == {}

    occ = client.get("/api/v1/availability/occupancy", params={"roomTypeId": hotel.deluxe.id, "date": "2024-01-02"})
    assert occ.json()["occupancyPercent"] == 40.0


def test_validation_and_not_found_bodies(client, hotel):
    bad = client.post("/api/v1/availability/check", json={
        "roomTypeId": hotel.deluxe.id, "checkInDate": "2024-01-05", "checkOutDate": "2024-01-01",
    })
    assert bad.status_code == 400
    assert bad.json() == {"error": "validation", "message": "checkOutDate must be after checkInDate"}

    missing = client.post("/api/v1/availability/check", json={
        "roomTypeId": 999, "checkInDate": "2024-01-01", "checkOutDate": "2024-01-02",
    })
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    assert client.post("/api/v1/availability/check", json={"roomTypeId": hotel.deluxe.id}).status_code == 422


def test_non_finite_numbers_are_validation_errors(client, hotel):
    group = client.post("/api/v1/groups", json={
        "groupName": "Nulls", "contactPerson": "Ada", "checkInDate": "2024-11-01", "checkOutDate": "2024-11-02",
        "roomBlocks": [{"roomTypeId": hotel.deluxe.id, "numberOfRooms": 1}], "totalAmount": "NaN",
    })
    assert group.status_code == 400
    assert group.json()["error"] == "validation"

    rates = client.post("/api/v1/rates", json={
        "roomTypeId": hotel.deluxe.id, "dates": ["2024-03-01"], "priceModel": "perRoom", "baseRate": "NaN",
    })
    assert rates.status_code == 400

    room_type = client.post("/api/v1/room-types", json={"name": "Void", "totalInventory": 1, "baseRate": "Infinity"})
    assert room_type.status_code == 400
    assert [t["name"] for t in client.get("/api/v1/room-types").json()] == ["Deluxe", "Suite"]


def test_capacity_error_body(client, hotel):
    body = {
        "roomTypeId": hotel.suite.id,
        "guestName": "Big Party",
        "checkInDate": "2024-02-01",
        "checkOutDate": "2024-02-02",
        "numberOfRooms": 4,
    }
    resp = client.post("/api/v1/reservations", json=body)
    assert resp.status_code == 409
    assert resp.json() == {
        "error": "capacity",
        "message": "Not enough availability for the requested stay.",
        "errors": ["Only 3 room(s) available for Suite on 2024-02-01, but 4 requested"],
    }


def test_reservation_status_endpoint(client, hotel):
    created = client.post("/api/v1/reservations", json={
        "roomTypeId": hotel.deluxe.id,
        "guestName": "Status",
        "checkInDate": "2024-02-01",
        "checkOutDate": "2024-02-02",
        "roomIds": [hotel.deluxe_rooms[0].id],
    }).json()
    assert created["rooms"][0]["roomNumber"] == "101"
    patched = client.patch(f"/api/v1/reservations/{created['id']}/status", json={"status": "checked-in"})
    assert patched.json()["status"] == "checked-in"
    assert client.get(f"/api/v1/reservations/{created['id']}").json()["guestName"] == "Status"


def test_rates_and_pricing(client, hotel):
    rt = hotel.deluxe.id
    posted = client.post("/api/v1/rates", json={
        "roomTypeId": rt, "dates": ["2024-03-01", "2024-03-02"], "priceModel": "perRoom",
        "baseRate": 900, "extraGuestRate": 150,
    })
    assert posted.status_code == 200
    assert posted.json()["updatedRates"]["2024-03-01"] == {"baseRate": 900.0, "extraGuestRate": 150.0}
    assert posted.json()["created"] == 2

    month = client.get("/api/v1/rates", params={"roomTypeId": rt, "month": 3, "year": 2024}).json()
    assert sorted(month) == ["2024-03-01", "2024-03-02"]
    assert client.get("/api/v1/rates/date", params={"roomTypeId": rt, "date": "2024-03-05"}).status_code == 404

    rule = client.get(f"/api/v1/pricing/rules/{rt}").json()
    assert rule == {"roomTypeId": rt, "enabled": False, "demandScale": 1.0, "rateRoundOff": 1, "occupancyRules": []}
    put = client.put(f"/api/v1/pricing/rules/{rt}", json={
        "enabled": True, "demandScale": 1.0, "rateRoundOff": 50,
        "occupancyRules": [{"startPercent": 0, "endPercent": 100, "addSubtract1": 23}],
    })
    assert put.status_code == 200
    assert put.json()["occupancyRules"][0]["addSubtract1"] == 23

    prices = client.get("/api/v1/pricing/price", params={
        "roomTypeId": rt, "startDate": "2024-03-02", "endDate": "2024-03-04",
    }).json()["prices"]
    assert [p["source"] for p in prices] == ["manual", "dynamic"]
    assert prices[1]["rates"] == {"baseRate": 1000.0, "extraGuestRate": 200.0}
    assert prices[1]["occupancyPercent"] == 0.0

    single = client.get("/api/v1/pricing/price", params={"roomTypeId": rt, "date": "2024-03-01"}).json()
    assert single["source"] == "manual"
    assert client.get("/api/v1/pricing/price", params={"roomTypeId": rt}).status_code == 400


def test_inventory_endpoints(client, hotel):
    rt = hotel.deluxe.id
    blocked = client.post("/api/v1/inventory/block", json={
        "roomTypeId": rt, "dates": ["2024-04-01"], "blockedInventory": 2, "reason": "Leak",
    })
    assert blocked.json()["created"] == 1
    listed = client.get("/api/v1/inventory/blocks", params={"roomTypeId": rt}).json()
    assert listed[0]["blockType"] == "out-of-order"

    grid = client.get("/api/v1/inventory/monthly", params={"month": 4, "year": 2024}).json()
    assert grid["daysInMonth"] == 30
    assert grid["dailyInventory"]["2024-04-01"][str(rt)]["availableRooms"] == 8

    status = client.get("/api/v1/inventory/room-types-availability", params={"date": "2024-04-01"}).json()
    assert status["date"] == "2024-04-01"
    assert [t["name"] for t in status["roomTypes"]] == ["Deluxe", "Suite"]
    assert status["roomTypes"][0]["roomStatus"]["clean"] == 5
    assert status["roomTypes"][0]["availability"]["blockedInventory"] == 2
    assert status["roomTypes"][0]["availability"]["inventoryAvailable"] == 8
    one = client.get("/api/v1/inventory/availability", params={"roomTypeId": rt, "date": "2024-04-01"}).json()
    assert one["roomType"]["name"] == "Deluxe"
    assert one["availability"]["actuallyAvailable"] == 5
    assert client.get("/api/v1/inventory/availability", params={"roomTypeId": 999}).status_code == 404

    assert client.request("DELETE", "/api/v1/inventory/block",
                          json={"roomTypeId": rt, "dates": ["2024-04-01"]}).json()["removed"] == 1

    hold = client.post("/api/v1/inventory/holds", json={
        "roomTypeId": rt, "checkInDate": "2030-04-01", "checkOutDate": "2030-04-03", "numberOfRooms": 2,
    })
    assert hold.status_code == 201
    token = hold.json()["token"]
    confirmed = client.post(f"/api/v1/inventory/holds/{token}/confirm", json={"guestName": "Holder"})
    assert confirmed.status_code == 201
    assert confirmed.json()["numberOfRooms"] == 2
    assert client.delete(f"/api/v1/inventory/holds/{token}").status_code == 404


def test_group_flow(client, hotel):
    blocks = [
        {"roomTypeId": hotel.deluxe.id, "numberOfRooms": 2},
        {"roomTypeId": hotel.suite.id, "numberOfRooms": 1},
    ]
    check = client.post("/api/v1/groups/check-availability", json={
        "checkInDate": "2024-11-01", "checkOutDate": "2024-11-03", "roomBlocks": blocks,
    }).json()
    assert check["available"] is True
    assert check["details"][0]["roomTypeName"] == "Deluxe"

    created = client.post("/api/v1/groups", json={
        "groupName": "Robotics Club", "contactPerson": "Ada", "checkInDate": "2024-11-01",
        "checkOutDate": "2024-11-03", "roomBlocks": blocks, "totalAmount": 900,
    })
    assert created.status_code == 201
    group = created.json()
    assert group["groupCode"].startswith("GRP")
    assert group["totalRooms"] == 3
    assert group["nights"] == 2

    too_many = client.post("/api/v1/groups/check-availability", json={
        "checkInDate": "2024-11-02", "checkOutDate": "2024-11-03",
        "roomBlocks": [{"roomTypeId": hotel.suite.id, "numberOfRooms": 3}],
    }).json()
    assert too_many["available"] is False
    assert too_many["message"] == "Room availability check failed"

    assigned = client.post(f"/api/v1/groups/{group['id']}/assign-rooms", json={"roomAssignments": [
        {"roomBlockIndex": 0, "roomIds": [hotel.deluxe_rooms[0].id]},
    ]})
    assert assigned.status_code == 200
    data = assigned.json()
    assert data["group"]["status"] == "checked-in"
    assert data["folio"]["roomNumbers"] == ["101"]
    assert data["folio"]["items"][0]["department"] == "Room"

    listed = client.get("/api/v1/groups", params={"search": "robot"}).json()
    assert listed["total"] == 1
    assert listed["groups"][0]["assignedRoomCount"] == 1

    assert client.post(f"/api/v1/groups/{group['id']}/check-out").json()["status"] == "checked-out"
    assert client.patch(f"/api/v1/groups/{group['id']}", json={"notes": "again"}).status_code == 409
