from homecare.models import Event


def create_event(client, headers, **data):
    payload = {"type": "visit", "date": "2025-03-03", **data}
    return client.post("/api/events", headers=headers, json=payload)


class TestEventCreation:
    def test_create_patient_visit(self, client, seed, auth_headers):
        tanaka = seed["patients"]["tanaka"]
        staff = seed["users"]["staff"]
        response = create_event(
            client, auth_headers("staff"), patient_id=tanaka.id, time="10:00", assignee_id=staff.id
        )
        assert response.status_code == 200
        body = response.json()
        event = body["event"]
        assert body["copies"] == []
        assert event["patient_name"] == "Tanaka Taro"
        # The patient's facility is where the visit takes place
        assert event["facility_name"] == "Sunrise Home"
        assert event["display_mode"] == "grouped"
        assert event["assignee_name"] == "Sam Staff"
        assert event["status"] == "draft"
        assert event["created_by"] == staff.id
        assert event["is_facility_event"] is False

    def test_create_facility_event(self, client, seed, auth_headers):
        maple_id = seed["facilities"]["maple"].id
        response = create_event(client, auth_headers("staff"), facility_id=maple_id, type="prescription")
        assert response.status_code == 200
        event = response.json()["event"]
        assert event["is_facility_event"] is True
        assert event["facility_name"] == "Maple House"
        assert event["time"] is None

    def test_patient_or_facility_required(self, client, auth_headers):
        response = create_event(client, auth_headers("staff"))
        assert response.status_code == 400
        assert response.json()["detail"] == "Either patient or facility is required"

    def test_invalid_time(self, client, seed, auth_headers):
        response = create_event(
            client, auth_headers("staff"), patient_id=seed["patients"]["home"].id, time="25:00"
        )
        assert response.status_code == 422

    def test_seconds_are_dropped_from_time(self, client, seed, auth_headers):
        response = create_event(
            client, auth_headers("staff"), patient_id=seed["patients"]["home"].id, time="09:15:00"
        )
        assert response.json()["event"]["time"] == "09:15"

    def test_patient_of_other_tenant(self, client, seed, auth_headers):
        response = create_event(client, auth_headers("staff"), patient_id=seed["patients"]["foreign"].id)
        assert response.status_code == 400

    def test_assignee_of_other_tenant(self, client, seed, auth_headers):
        response = create_event(
            client,
            auth_headers("staff"),
            patient_id=seed["patients"]["home"].id,
            assignee_id=seed["users"]["other_admin"].id,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Assignee not found"

    def test_viewer_cannot_create(self, client, seed, auth_headers):
        response = create_event(client, auth_headers("viewer"), patient_id=seed["patients"]["home"].id)
        assert response.status_code == 403

    def test_create_with_repeat(self, client, seed, auth_headers):
        response = create_event(
            client,
            auth_headers("staff"),
            type="prescription",
            status="confirmed",
            patient_id=seed["patients"]["home"].id,
            repeat={"mode": "days", "interval": 14, "count": 2},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["event"]["is_recurring"] is True
        assert body["event"]["recurring_interval"] == 14
        assert body["event"]["status"] == "confirmed"
        assert [c["date"] for c in body["copies"]] == ["2025-03-17", "2025-03-31"]
        assert all(c["status"] == "draft" for c in body["copies"])
        assert all(c["recurring_interval"] == 14 for c in body["copies"])

    def test_invalid_repeat_creates_nothing(self, client, db, seed, auth_headers):
        response = create_event(
            client,
            auth_headers("staff"),
            patient_id=seed["patients"]["home"].id,
            repeat={"mode": "days", "interval": 1, "count": 101},
        )
        assert response.status_code == 400
        assert db.query(Event).count() == 0


class TestEventQueries:
    def seed_events(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        tanaka, suzuki, home = (seed["patients"][k].id for k in ("tanaka", "suzuki", "home"))
        create_event(client, headers, patient_id=tanaka, date="2025-03-03", time="10:00")
        create_event(client, headers, patient_id=suzuki, date="2025-03-03", time="09:00", type="prescription")
        create_event(client, headers, patient_id=home, date="2025-03-03")
        create_event(client, headers, patient_id=home, date="2025-03-10", time="08:00", type="both")
        create_event(client, headers, facility_id=seed["facilities"]["maple"].id, date="2025-04-01")

    def test_list_in_range_sorted(self, client, seed, auth_headers):
        self.seed_events(client, seed, auth_headers)
        response = client.get(
            "/api/events", headers=auth_headers("viewer"), params={"start": "2025-03-01", "end": "2025-03-31"}
        )
        assert response.status_code == 200
        events = response.json()
        assert [(e["date"], e["time"]) for e in events] == [
            ("2025-03-03", "09:00"),
            ("2025-03-03", "10:00"),
            ("2025-03-03", None),
            ("2025-03-10", "08:00"),
        ]

    def test_filter_by_type_and_facility(self, client, seed, auth_headers):
        self.seed_events(client, seed, auth_headers)
        headers = auth_headers("staff")

        prescriptions = client.get("/api/events", headers=headers, params={"type": "prescription"}).json()
        assert [e["patient_name"] for e in prescriptions] == ["Suzuki Hanako"]

        sunrise_id = seed["facilities"]["sunrise"].id
        residents = client.get("/api/events", headers=headers, params={"facility_id": sunrise_id}).json()
        assert {e["patient_name"] for e in residents} == {"Tanaka Taro", "Suzuki Hanako"}

    def test_other_tenant_sees_nothing(self, client, seed, auth_headers):
        self.seed_events(client, seed, auth_headers)
        assert client.get("/api/events", headers=auth_headers("other_admin")).json() == []

    def test_calendar_groups_facilities(self, client, seed, auth_headers):
        self.seed_events(client, seed, auth_headers)
        response = client.get(
            "/api/events/calendar",
            headers=auth_headers("staff"),
            params={"start": "2025-03-03", "end": "2025-03-03"},
        )
        assert response.status_code == 200
        [day] = response.json()
        assert day["date"] == "2025-03-03"
        [group] = day["facility_groups"]
        assert group["facility_name"] == "Sunrise Home"
        assert group["patient_names"] == ["Suzuki Hanako", "Tanaka Taro"]
        assert group["has_visit"] and group["has_prescription"]
        assert [e["patient_name"] for e in day["individual_events"]] == ["Yamada Ichiro"]


class TestEventChanges:
    def test_partial_update(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        created = create_event(
            client, headers, patient_id=seed["patients"]["home"].id, time="10:00", memo="Bring forms"
        ).json()["event"]

        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"report_done": True})
        assert response.status_code == 200
        body = response.json()
        assert body["report_done"] is True
        assert body["memo"] == "Bring forms"
        assert body["time"] == "10:00"

        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"time": None})
        assert response.json()["time"] is None

    def test_update_cannot_remove_both_targets(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        created = create_event(client, headers, patient_id=seed["patients"]["home"].id).json()["event"]
        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"patient_id": None})
        assert response.status_code == 400

    def test_delete(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        created = create_event(client, headers, patient_id=seed["patients"]["home"].id).json()["event"]
        assert client.delete(f"/api/events/{created['id']}", headers=headers).json() == {"success": True}
        assert client.get(f"/api/events/{created['id']}", headers=headers).status_code == 404

    def test_cross_tenant_event_is_not_found(self, client, seed, auth_headers):
        created = create_event(
            client, auth_headers("staff"), patient_id=seed["patients"]["home"].id
        ).json()["event"]
        response = client.get(f"/api/events/{created['id']}", headers=auth_headers("other_admin"))
        assert response.status_code == 404
        response = client.delete(f"/api/events/{created['id']}", headers=auth_headers("other_admin"))
        assert response.status_code == 404

    def test_copy_with_offsets(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        staff = seed["users"]["staff"]
        created = create_event(
            client,
            headers,
            patient_id=seed["patients"]["tanaka"].id,
            time="14:00",
            assignee_id=staff.id,
            status="confirmed",
        ).json()["event"]

        response = client.post(
            f"/api/events/{created['id']}/copy",
            headers=headers,
            json={"repeat": {"mode": "offsets", "offsets": [7, 1]}},
        )
        assert response.status_code == 200
        copies = response.json()
        assert [c["date"] for c in copies] == ["2025-03-04", "2025-03-10"]
        for copy in copies:
            assert copy["time"] == "14:00"
            assert copy["assignee_id"] == staff.id
            assert copy["status"] == "draft"
            assert copy["is_completed"] is False
            assert copy["is_recurring"] is False

    def test_confirm_drafts(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        home_id = seed["patients"]["home"].id
        draft = create_event(client, headers, patient_id=home_id).json()["event"]
        confirmed = create_event(client, headers, patient_id=home_id, status="confirmed").json()["event"]
        foreign = create_event(
            client, auth_headers("other_admin"), patient_id=seed["patients"]["foreign"].id
        ).json()["event"]

        response = client.post(
            "/api/events/confirm",
            headers=headers,
            json={"ids": [draft["id"], confirmed["id"], foreign["id"]]},
        )
        assert response.status_code == 200
        assert response.json() == {"count": 1}

        assert client.get(f"/api/events/{draft['id']}", headers=headers).json()["status"] == "confirmed"
        other = client.get(f"/api/events/{foreign['id']}", headers=auth_headers("other_admin")).json()
        assert other["status"] == "draft"

    def test_out_of_range_repeat_is_rejected(self, client, db, seed, auth_headers):
        response = create_event(
            client,
            auth_headers("staff"),
            patient_id=seed["patients"]["home"].id,
            repeat={"mode": "offsets", "offsets": [1_000_000_000]},
        )
        assert response.status_code == 400
        assert db.query(Event).count() == 0


class TestEventsOfInactiveReferences:
    def test_complete_event_of_discharged_patient(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        home_id = seed["patients"]["home"].id
        created = create_event(client, headers, patient_id=home_id).json()["event"]
        assert client.delete(f"/api/patients/{home_id}", headers=headers).status_code == 200

        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"is_completed": True})
        assert response.status_code == 200
        assert response.json()["is_completed"] is True

        # Resending the unchanged patient is accepted too
        response = client.put(
            f"/api/events/{created['id']}", headers=headers, json={"patient_id": home_id, "memo": "Final visit"}
        )
        assert response.status_code == 200

    def test_report_event_of_deactivated_assignee(self, client, db, seed, auth_headers):
        staff = seed["users"]["staff"]
        created = create_event(
            client, auth_headers("staff"), patient_id=seed["patients"]["home"].id, assignee_id=staff.id
        ).json()["event"]
        staff.is_active = False
        db.commit()

        response = client.put(
            f"/api/events/{created['id']}", headers=auth_headers("admin"), json={"report_done": True}
        )
        assert response.status_code == 200
        assert response.json()["assignee_id"] == staff.id

    def test_moving_to_inactive_patient_is_rejected(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        suzuki_id = seed["patients"]["suzuki"].id
        created = create_event(client, headers, patient_id=seed["patients"]["home"].id).json()["event"]
        client.delete(f"/api/patients/{suzuki_id}", headers=headers)

        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"patient_id": suzuki_id})
        assert response.status_code == 400
        assert response.json()["detail"] == "Patient not found"

    def test_clearing_both_targets_is_rejected(self, client, seed, auth_headers):
        headers = auth_headers("staff")
        created = create_event(client, headers, facility_id=seed["facilities"]["maple"].id).json()["event"]
        response = client.put(f"/api/events/{created['id']}", headers=headers, json={"facility_id": None})
        assert response.status_code == 400
