from homecare.models import Patient


class TestFacilities:
    def test_list_with_patient_counts(self, client, auth_headers):
        response = client.get("/api/facilities", headers=auth_headers("viewer"))
        assert response.status_code == 200
        counts = {f["name"]: f["patient_count"] for f in response.json()}
        assert counts == {"Maple House": 0, "Sunrise Home": 2}

    def test_create_facility(self, client, auth_headers):
        response = client.post(
            "/api/facilities",
            headers=auth_headers("staff"),
            json={"name": "Cedar Court", "phone": "06-1111-2222", "display_mode": "individual"},
        )
        assert response.status_code == 200
        assert response.json()["display_mode"] == "individual"

    def test_viewer_cannot_create(self, client, auth_headers):
        response = client.post("/api/facilities", headers=auth_headers("viewer"), json={"name": "X"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Edit permission required"

    def test_invalid_phone(self, client, auth_headers):
        response = client.post(
            "/api/facilities", headers=auth_headers("staff"), json={"name": "X", "phone": "+81 3 1234"}
        )
        assert response.status_code == 422

    def test_blank_name(self, client, auth_headers):
        response = client.post("/api/facilities", headers=auth_headers("staff"), json={"name": "   "})
        assert response.status_code == 422

    def test_detail_lists_residents(self, client, seed, auth_headers):
        sunrise_id = seed["facilities"]["sunrise"].id
        response = client.get(f"/api/facilities/{sunrise_id}", headers=auth_headers("staff"))
        assert response.status_code == 200
        assert {p["name"] for p in response.json()["patients"]} == {"Tanaka Taro", "Suzuki Hanako"}

    def test_other_tenant_sees_not_found(self, client, seed, auth_headers):
        sunrise_id = seed["facilities"]["sunrise"].id
        response = client.get(f"/api/facilities/{sunrise_id}", headers=auth_headers("other_admin"))
        assert response.status_code == 404

    def test_delete_detaches_residents(self, client, db, seed, auth_headers):
        sunrise_id = seed["facilities"]["sunrise"].id
        response = client.delete(f"/api/facilities/{sunrise_id}", headers=auth_headers("staff"))
        assert response.status_code == 200

        db.expire_all()
        tanaka = db.get(Patient, seed["patients"]["tanaka"].id)
        assert tanaka.facility_id is None
        assert client.get(f"/api/facilities/{sunrise_id}", headers=auth_headers("staff")).status_code == 404


class TestPatients:
    def test_list_ordered_by_kana(self, client, auth_headers):
        response = client.get("/api/patients", headers=auth_headers("staff"))
        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Suzuki Hanako", "Tanaka Taro", "Yamada Ichiro"]

    def test_super_admin_sees_every_tenant(self, client, auth_headers):
        response = client.get("/api/patients", headers=auth_headers("super_admin"))
        assert "Other Patient" in [p["name"] for p in response.json()]

    def test_create_patient_at_facility(self, client, seed, auth_headers):
        maple_id = seed["facilities"]["maple"].id
        response = client.post(
            "/api/patients",
            headers=auth_headers("staff"),
            json={"name": "Kato Jiro", "facility_id": maple_id},
        )
        assert response.status_code == 200
        assert response.json()["facility"]["name"] == "Maple House"

    def test_facility_of_other_tenant_is_rejected(self, client, db, seed, auth_headers):
        from homecare.models import Facility

        foreign = Facility(organization_id=seed["organizations"]["other"].id, name="Foreign", is_active=True)
        db.add(foreign)
        db.commit()

        response = client.post(
            "/api/patients", headers=auth_headers("staff"), json={"name": "Kato", "facility_id": foreign.id}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Facility not found"

    def test_super_admin_without_organization_cannot_create(self, client, auth_headers):
        response = client.post("/api/patients", headers=auth_headers("super_admin"), json={"name": "Kato"})
        assert response.status_code == 400

    def test_detail_without_summary(self, client, seed, auth_headers):
        tanaka_id = seed["patients"]["tanaka"].id
        response = client.get(f"/api/patients/{tanaka_id}", headers=auth_headers("viewer"))
        assert response.status_code == 200
        assert response.json()["summary"] is None
        assert response.json()["facility"]["display_mode"] == "grouped"

    def test_cross_tenant_patient_is_not_found(self, client, seed, auth_headers):
        foreign_id = seed["patients"]["foreign"].id
        response = client.get(f"/api/patients/{foreign_id}", headers=auth_headers("staff"))
        assert response.status_code == 404
        assert response.json()["detail"] == "Patient not found"

    def test_update_and_soft_delete(self, client, seed, auth_headers):
        home_id = seed["patients"]["home"].id
        response = client.put(
            f"/api/patients/{home_id}",
            headers=auth_headers("staff"),
            json={"name": "Yamada Ichiro", "phone": "090-0000-1111"},
        )
        assert response.status_code == 200
        assert response.json()["phone"] == "090-0000-1111"

        assert client.delete(f"/api/patients/{home_id}", headers=auth_headers("staff")).status_code == 200
        assert client.get(f"/api/patients/{home_id}", headers=auth_headers("staff")).status_code == 404
