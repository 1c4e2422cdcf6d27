from datetime import date
from decimal import Decimal

import pytest

from conftest import auth_headers, identity_of
from envindo.core.exceptions import ConflictError, ForbiddenError, IllegalTransitionError, NotFoundError
from envindo.core.roles import Role
from envindo.models import ManifestElektronik
from envindo.modules.manifests.service import manifest_service
from envindo.modules.waste_collection.service import waste_collection_service
from envindo.schemas.manifest_schema import ManifestCreate
from envindo.schemas.pengangkutan_schema import PengangkutanComplete, PengangkutanCreate


def run_payload(**overrides):
    payload = dict(
        tanggal_pengangkutan=date(2026, 3, 2),
        jenis_limbah="Oli bekas",
        berat_kg=Decimal("120.5"),
        lokasi_pengangkutan="Kawasan Industri Cikarang Blok B",
        metode_pengangkutan="truk_tangki",
    )
    payload.update(overrides)
    return PengangkutanCreate(**payload)


def manifest_payload(run_id, **overrides):
    payload = dict(
        riwayat_pengangkutan_id=run_id,
        tanggal_manifest=date(2026, 3, 3),
        jenis_limbah="Oli bekas",
        kode_limbah="B105d",
        jumlah_limbah_kg=Decimal("120.5"),
        asal_limbah="Bengkel produksi",
        tujuan_pengolahan="Fasilitas pengolahan Envindo",
        metode_pengolahan="Daur ulang",
        penyedia_jasa="PT Envindo Transport",
    )
    payload.update(overrides)
    return ManifestCreate(**payload)


@pytest.fixture
def finished_run(db, make_user):
    async def _finished_run():
        owner = await make_user()
        admin = await make_user(Role.ADMIN_KEUANGAN)
        run = await waste_collection_service.schedule(db, identity_of(owner), run_payload())
        await waste_collection_service.start(db, identity_of(admin), run.id)
        await waste_collection_service.complete(
            db, identity_of(admin), run.id, PengangkutanComplete(dokumentasi="foto/run.jpg")
        )
        return owner, run

    return _finished_run


async def test_collection_run_lifecycle(db, make_user):
    owner = await make_user()
    admin = await make_user(Role.ADMIN_KEUANGAN)
    run = await waste_collection_service.schedule(db, identity_of(owner), run_payload())
    assert run.status == "terjadwal"
    assert run.nomor_manifest.startswith("MNF-")

    with pytest.raises(IllegalTransitionError):
        await waste_collection_service.complete(db, identity_of(admin), run.id)

    await waste_collection_service.start(db, identity_of(admin), run.id)
    with pytest.raises(IllegalTransitionError):
        await waste_collection_service.cancel(db, identity_of(owner), run.id)

    await waste_collection_service.complete(
        db, identity_of(admin), run.id, PengangkutanComplete(catatan="Diterima lengkap")
    )
    assert run.status == "selesai"
    assert run.catatan == "Diterima lengkap"


async def test_manifest_requires_completed_run(db, make_user):
    owner = await make_user()
    run = await waste_collection_service.schedule(db, identity_of(owner), run_payload())

    with pytest.raises(ConflictError, match="completed collection"):
        await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))


async def test_manifest_for_someone_elses_run_is_not_found(db, make_user, finished_run):
    _, run = await finished_run()
    stranger = await make_user()
    with pytest.raises(NotFoundError):
        await manifest_service.create(db, identity_of(stranger), manifest_payload(run.id))


async def test_one_manifest_per_run(db, finished_run):
    owner, run = await finished_run()
    manifest = await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))
    assert manifest.status_manifest == "draft"
    assert manifest.nomor_manifest.startswith("MNFE-")

    with pytest.raises(ConflictError, match="already exists"):
        await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))


async def test_draft_cannot_be_finished_or_approved(db, make_user, finished_run):
    owner, run = await finished_run()
    superadmin = await make_user(Role.SUPERADMIN)
    manifest = await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))

    with pytest.raises(IllegalTransitionError):
        await manifest_service.finish(db, identity_of(superadmin), manifest.id)
    with pytest.raises(IllegalTransitionError):
        await manifest_service.review(db, identity_of(superadmin), manifest.id, "approve")
    assert manifest.status_manifest == "draft"


async def test_review_is_superadmin_only_at_service_level(db, make_user, finished_run):
    owner, run = await finished_run()
    admin = await make_user(Role.ADMIN_KEUANGAN)
    manifest = await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))
    await manifest_service.submit(db, identity_of(owner), manifest.id)

    with pytest.raises(ForbiddenError, match="Only superadmin"):
        await manifest_service.review(db, identity_of(admin), manifest.id, "approve")
    assert manifest.status_manifest == "diajukan"


async def test_rejected_manifest_is_terminal(db, make_user, finished_run):
    owner, run = await finished_run()
    superadmin = await make_user(Role.SUPERADMIN)
    manifest = await manifest_service.create(db, identity_of(owner), manifest_payload(run.id))
    await manifest_service.submit(db, identity_of(owner), manifest.id)

    await manifest_service.review(db, identity_of(superadmin), manifest.id, "reject", "Kode limbah salah")
    assert manifest.status_manifest == "ditolak"
    assert manifest.catatan_persetujuan == "Kode limbah salah"

    with pytest.raises(IllegalTransitionError):
        await manifest_service.review(db, identity_of(superadmin), manifest.id, "approve")


async def test_manifest_approval_over_http(client, session_factory, make_user, finished_run):
    owner, run = await finished_run()
    admin = await make_user(Role.ADMIN_KEUANGAN)
    superadmin = await make_user(Role.SUPERADMIN)

    body = manifest_payload(run.id).model_dump(mode="json")
    response = await client.post("/api/manifests/create", json=body, headers=auth_headers(owner))
    assert response.status_code == 201
    manifest_id = response.json()["data"]["id"]

    response = await client.put(f"/api/manifests/{manifest_id}/submit", headers=auth_headers(owner))
    assert response.json()["data"]["status_manifest"] == "diajukan"

    response = await client.put(
        f"/api/manifests/{manifest_id}/approve", json={"action": "approve"}, headers=auth_headers(admin)
    )
    assert response.status_code == 403
    async with session_factory() as session:
        assert (await session.get(ManifestElektronik, manifest_id)).status_manifest == "diajukan"

    response = await client.put(
        f"/api/manifests/{manifest_id}/approve",
        json={"action": "approve", "catatan_persetujuan": "Lengkap"},
        headers=auth_headers(superadmin),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status_manifest"] == "disetujui"
    assert data["disetujui_oleh"] == superadmin.username
    assert data["tanggal_persetujuan"] is not None

    response = await client.put(f"/api/manifests/{manifest_id}/finish", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["status_manifest"] == "selesai"


async def test_customer_cannot_start_collection_over_http(client, make_user):
    owner = await make_user()
    response = await client.post(
        "/api/waste-collection/schedule",
        json=run_payload().model_dump(mode="json"),
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    run_id = response.json()["data"]["id"]

    response = await client.put(f"/api/waste-collection/{run_id}/start", headers=auth_headers(owner))
    assert response.status_code == 403
