"""Tests for FastAPI mapping endpoints and the recomputation they trigger.

End-to-end fan-in: J1 → O1 (2) → Q1 (10) gives J1 an impact of 20; an
extra J1 → O2 (5) edge to an Output without outcomes leaves it at 20;
deleting O1 → Q1 drops it to 0.
"""

import pytest
from httpx import AsyncClient
from uuid_extensions import uuid7

BASE = "/v1/tenants/tenant-a"


@pytest.fixture
async def graph(client: AsyncClient) -> dict:
    async def post(path: str, body: dict) -> dict:
        resp = await client.post(f"{BASE}/{path}", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return {
        "j1": await post("jobs", {"title": "J1"}),
        "o1": await post("outputs", {"name": "O1", "target_value": 10}),
        "o2": await post("outputs", {"name": "O2", "target_value": 10}),
        "q1": await post("outcomes", {"name": "Q1", "target_value": 100}),
    }


async def _impact(client: AsyncClient, job_id: str) -> float:
    return (await client.get(f"{BASE}/jobs/{job_id}")).json()["impact_value"]


async def _link_jo(client: AsyncClient, job_id: str, pi_id: str, value: float):
    return await client.post(f"{BASE}/job-output-mappings", json={
        "job_id": job_id, "pi_id": pi_id, "pi_impact_value": value,
    })


async def _link_oo(client: AsyncClient, pi_id: str, qbo_id: str, impact: float):
    return await client.post(f"{BASE}/output-outcome-mappings", json={
        "pi_id": pi_id, "qbo_id": qbo_id, "qbo_impact": impact,
    })


class TestWeightedFanInThroughApi:

    @pytest.mark.anyio
    async def test_fan_in_and_deletion(self, client: AsyncClient, graph: dict) -> None:
        j1, o1, o2, q1 = graph["j1"]["job_id"], graph["o1"]["output_id"], \
            graph["o2"]["output_id"], graph["q1"]["outcome_id"]

        resp = await _link_jo(client, j1, o1, 2)
        assert resp.json()["impact_sync"]["success"] is True
        oo = (await _link_oo(client, o1, q1, 10)).json()
        assert await _impact(client, j1) == pytest.approx(20.0)

        await _link_jo(client, j1, o2, 5)
        assert await _impact(client, j1) == pytest.approx(20.0)

        resp = await client.delete(f"{BASE}/output-outcome-mappings/{oo['mapping_id']}")
        assert resp.status_code == 200
        assert resp.json()["impact_sync"]["jobs_updated"] == 1
        assert await _impact(client, j1) == 0.0

    @pytest.mark.anyio
    async def test_outcome_points_follow_mappings(self, client: AsyncClient, graph: dict) -> None:
        q1 = graph["q1"]["outcome_id"]
        await _link_oo(client, graph["o1"]["output_id"], q1, 4)
        await _link_oo(client, graph["o2"]["output_id"], q1, 6)
        assert (await client.get(f"{BASE}/outcomes/{q1}")).json()["points"] == pytest.approx(10.0)

    @pytest.mark.anyio
    async def test_duplicate_job_output_edges_sum(self, client: AsyncClient, graph: dict) -> None:
        j1, o1 = graph["j1"]["job_id"], graph["o1"]["output_id"]
        await _link_oo(client, o1, graph["q1"]["outcome_id"], 10)
        await _link_jo(client, j1, o1, 2)
        await _link_jo(client, j1, o1, 3)
        assert await _impact(client, j1) == pytest.approx(50.0)

    @pytest.mark.anyio
    async def test_overflowing_weights_leave_impacts_unchanged(
        self, client: AsyncClient, graph: dict,
    ) -> None:
        j1, o1 = graph["j1"]["job_id"], graph["o1"]["output_id"]
        await _link_oo(client, o1, graph["q1"]["outcome_id"], 1e200)

        resp = await _link_jo(client, j1, o1, 1e200)
        assert resp.status_code == 201
        sync = resp.json()["impact_sync"]
        assert sync["success"] is False
        assert "not finite" in sync["message"]

        assert await _impact(client, j1) == 0.0
        assert (await client.get(f"{BASE}/outcomes/progress")).status_code == 200


class TestJobOutputMappings:

    @pytest.mark.anyio
    async def test_create_snapshots_names(self, client: AsyncClient, graph: dict) -> None:
        resp = await _link_jo(client, graph["j1"]["job_id"], graph["o1"]["output_id"], 1)
        assert resp.status_code == 201
        data = resp.json()
        assert (data["job_name"], data["pi_name"]) == ("J1", "O1")

    @pytest.mark.anyio
    async def test_create_requires_entities(self, client: AsyncClient, graph: dict) -> None:
        resp = await _link_jo(client, str(uuid7()), graph["o1"]["output_id"], 1)
        assert resp.status_code == 404
        resp = await _link_jo(client, graph["j1"]["job_id"], str(uuid7()), 1)
        assert resp.status_code == 404

    @pytest.mark.anyio
    async def test_create_rejects_other_tenant_entities(
        self, client: AsyncClient, graph: dict,
    ) -> None:
        resp = await client.post("/v1/tenants/tenant-b/job-output-mappings", json={
            "job_id": graph["j1"]["job_id"], "pi_id": graph["o1"]["output_id"],
        })
        assert resp.status_code == 404

    @pytest.mark.anyio
    async def test_filters(self, client: AsyncClient, graph: dict) -> None:
        j1, o1, o2 = graph["j1"]["job_id"], graph["o1"]["output_id"], graph["o2"]["output_id"]
        await _link_jo(client, j1, o1, 1)
        await _link_jo(client, j1, o2, 1)
        assert (await client.get(f"{BASE}/job-output-mappings")).json()["total"] == 2
        by_job = (await client.get(f"{BASE}/job-output-mappings", params={"job_id": j1})).json()
        assert by_job["total"] == 2
        by_pi = (await client.get(f"{BASE}/job-output-mappings", params={"pi_id": o2})).json()
        assert by_pi["total"] == 1

    @pytest.mark.anyio
    async def test_update_repoints_and_recomputes(self, client: AsyncClient, graph: dict) -> None:
        j1, o1, o2 = graph["j1"]["job_id"], graph["o1"]["output_id"], graph["o2"]["output_id"]
        await _link_oo(client, o2, graph["q1"]["outcome_id"], 10)
        mapping = (await _link_jo(client, j1, o1, 2)).json()
        assert await _impact(client, j1) == 0.0

        resp = await client.put(
            f"{BASE}/job-output-mappings/{mapping['mapping_id']}", json={"pi_id": o2},
        )
        assert resp.status_code == 200
        assert resp.json()["pi_name"] == "O2"
        assert resp.json()["impact_sync"]["success"] is True
        assert await _impact(client, j1) == pytest.approx(20.0)

    @pytest.mark.anyio
    async def test_update_to_missing_entity(self, client: AsyncClient, graph: dict) -> None:
        mapping = (await _link_jo(
            client, graph["j1"]["job_id"], graph["o1"]["output_id"], 2,
        )).json()
        resp = await client.put(
            f"{BASE}/job-output-mappings/{mapping['mapping_id']}", json={"job_id": str(uuid7())},
        )
        assert resp.status_code == 404

    @pytest.mark.anyio
    async def test_missing_mapping(self, client: AsyncClient) -> None:
        assert (await client.get(f"{BASE}/job-output-mappings/{uuid7()}")).status_code == 404
        resp = await client.put(f"{BASE}/job-output-mappings/{uuid7()}", json={"notes": "x"})
        assert resp.status_code == 404
        assert (await client.delete(f"{BASE}/job-output-mappings/{uuid7()}")).status_code == 404

    @pytest.mark.anyio
    async def test_missing_mapping_reported_before_entities(self, client: AsyncClient) -> None:
        resp = await client.put(
            f"{BASE}/job-output-mappings/{uuid7()}",
            json={"job_id": str(uuid7()), "pi_id": str(uuid7())},
        )
        assert resp.status_code == 404
        assert resp.json()["detail"].startswith("Mapping ")


class TestOutputOutcomeMappings:

    @pytest.mark.anyio
    async def test_qbo_impact_required(self, client: AsyncClient, graph: dict) -> None:
        resp = await client.post(f"{BASE}/output-outcome-mappings", json={
            "pi_id": graph["o1"]["output_id"], "qbo_id": graph["q1"]["outcome_id"],
        })
        assert resp.status_code == 422

    @pytest.mark.anyio
    async def test_duplicate_pair_conflict(self, client: AsyncClient, graph: dict) -> None:
        o1, q1 = graph["o1"]["output_id"], graph["q1"]["outcome_id"]
        assert (await _link_oo(client, o1, q1, 1)).status_code == 201
        assert (await _link_oo(client, o1, q1, 2)).status_code == 409

    @pytest.mark.anyio
    async def test_create_requires_entities(self, client: AsyncClient, graph: dict) -> None:
        assert (await _link_oo(client, str(uuid7()), graph["q1"]["outcome_id"], 1)).status_code == 404
        assert (await _link_oo(client, graph["o1"]["output_id"], str(uuid7()), 1)).status_code == 404

    @pytest.mark.anyio
    async def test_update_weight_recomputes(self, client: AsyncClient, graph: dict) -> None:
        j1, o1 = graph["j1"]["job_id"], graph["o1"]["output_id"]
        await _link_jo(client, j1, o1, 2)
        oo = (await _link_oo(client, o1, graph["q1"]["outcome_id"], 10)).json()
        resp = await client.put(
            f"{BASE}/output-outcome-mappings/{oo['mapping_id']}", json={"qbo_impact": 1.5},
        )
        assert resp.status_code == 200
        assert await _impact(client, j1) == pytest.approx(3.0)

    @pytest.mark.anyio
    async def test_update_into_existing_pair_conflicts(
        self, client: AsyncClient, graph: dict,
    ) -> None:
        q1 = graph["q1"]["outcome_id"]
        await _link_oo(client, graph["o1"]["output_id"], q1, 1)
        second = (await _link_oo(client, graph["o2"]["output_id"], q1, 1)).json()
        resp = await client.put(
            f"{BASE}/output-outcome-mappings/{second['mapping_id']}",
            json={"pi_id": graph["o1"]["output_id"]},
        )
        assert resp.status_code == 409

    @pytest.mark.anyio
    async def test_filters(self, client: AsyncClient, graph: dict) -> None:
        o1, o2, q1 = graph["o1"]["output_id"], graph["o2"]["output_id"], graph["q1"]["outcome_id"]
        await _link_oo(client, o1, q1, 1)
        await _link_oo(client, o2, q1, 1)
        url = f"{BASE}/output-outcome-mappings"
        assert (await client.get(url, params={"pi_id": o1})).json()["total"] == 1
        assert (await client.get(url, params={"qbo_id": q1})).json()["total"] == 2

    @pytest.mark.anyio
    async def test_rename_outcome_refreshes_snapshot(self, client: AsyncClient, graph: dict) -> None:
        q1 = graph["q1"]["outcome_id"]
        oo = (await _link_oo(client, graph["o1"]["output_id"], q1, 1)).json()
        await client.put(f"{BASE}/outcomes/{q1}", json={"name": "Revenue"})
        fetched = (await client.get(f"{BASE}/output-outcome-mappings/{oo['mapping_id']}")).json()
        assert fetched["qbo_name"] == "Revenue"
