"""Disease areas and specialties."""
from kol360.constants import DISEASE_AREAS
from tests.factories import auth_headers


class TestDiseaseAreas:
    async def test_any_user_can_list(self, client, team_member):
        response = await client.get("/api/v1/disease-areas", headers=auth_headers(team_member))

        # Seeded names under one therapeutic area come back alphabetically
        assert [a["name"] for a in response.json()["items"]] == sorted(name for _, name in DISEASE_AREAS)

    async def test_unknown_id(self, client, client_admin_headers):
        response = await client.get("/api/v1/disease-areas/missing", headers=client_admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Disease area not found"

    async def test_create_requires_platform_admin(self, client, client_admin_headers):
        payload = {"code": "UVEITIS", "name": "Uveitis", "therapeutic_area": "Ophthalmology"}

        response = await client.post("/api/v1/disease-areas", json=payload, headers=client_admin_headers)

        assert response.status_code == 403

    async def test_codes_are_unique(self, client, admin_headers):
        payload = {"code": "RETINA", "name": "Retina again", "therapeutic_area": "Ophthalmology"}

        response = await client.post("/api/v1/disease-areas", json=payload, headers=admin_headers)

        assert response.status_code == 409

    async def test_deactivated_area_leaves_list(self, client, admin_headers):
        created = await client.post("/api/v1/disease-areas", json={
            "code": "UVEITIS", "name": "Uveitis", "therapeutic_area": "Ophthalmology",
        }, headers=admin_headers)
        area_id = created.json()["id"]

        await client.put(f"/api/v1/disease-areas/{area_id}", json={"is_active": False}, headers=admin_headers)
        listed = await client.get("/api/v1/disease-areas", headers=admin_headers)

        assert created.status_code == 201
        assert area_id not in [a["id"] for a in listed.json()["items"]]


class TestSpecialties:
    async def test_create_rename_and_soft_delete(self, client, admin_headers):
        created = (await client.post("/api/v1/specialties", json={"name": "Neuro-ophthalmology"},
                                     headers=admin_headers)).json()
        await client.post("/api/v1/specialties", json={"name": "Oculoplastics"}, headers=admin_headers)

        duplicate = await client.put(f"/api/v1/specialties/{created['id']}", json={"name": "Oculoplastics"},
                                     headers=admin_headers)
        deleted = await client.delete(f"/api/v1/specialties/{created['id']}", headers=admin_headers)
        listed = await client.get("/api/v1/specialties", headers=admin_headers)

        assert duplicate.status_code == 409
        assert deleted.json() == {"deleted": True, "id": created["id"]}
        assert [s["name"] for s in listed.json()["items"]] == ["Oculoplastics"]

    async def test_reads_need_client_admin(self, client, team_member):
        response = await client.get("/api/v1/specialties", headers=auth_headers(team_member))

        assert response.status_code == 403

    async def test_writes_need_platform_admin(self, client, client_admin_headers):
        response = await client.post("/api/v1/specialties", json={"name": "Pediatric"}, headers=client_admin_headers)

        assert response.status_code == 403
