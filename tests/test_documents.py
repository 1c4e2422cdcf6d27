from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from conftest import auth_headers, identity_of
from envindo.core.exceptions import ForbiddenError
from envindo.models import DokumenKerjasama
from envindo.modules.documents.service import (
    derive_document_status,
    get_document_for_identity,
    refresh_document_statuses,
    register_document,
)
from envindo.schemas.dokumen_schema import DokumenCreate
from envindo.tasks.document_tasks import refresh_document_statuses_async

TODAY = date(2026, 6, 15)


def make_doc(mulai=None, selesai=None, status="aktif"):
    return DokumenKerjasama(
        nama_dokumen="Kontrak pengangkutan",
        jenis_dokumen="kontrak",
        tanggal_dokumen=date(2026, 1, 1),
        tanggal_berlaku_mulai=mulai,
        tanggal_berlaku_selesai=selesai,
        status=status,
    )


@pytest.mark.parametrize(
    "mulai,selesai,expected",
    [
        (TODAY + timedelta(days=1), TODAY + timedelta(days=365), "draft"),
        (TODAY - timedelta(days=10), TODAY + timedelta(days=365), "aktif"),
        (TODAY - timedelta(days=10), TODAY + timedelta(days=30), "akan_kadaluarsa"),
        (TODAY - timedelta(days=10), TODAY, "akan_kadaluarsa"),
        (TODAY - timedelta(days=10), TODAY - timedelta(days=1), "kadaluarsa"),
        (None, TODAY + timedelta(days=31), "aktif"),
        (TODAY - timedelta(days=1), None, "aktif"),
    ],
)
def test_derive_document_status(mulai, selesai, expected):
    assert derive_document_status(make_doc(mulai, selesai), TODAY) == expected


def test_document_without_period_keeps_stored_status():
    assert derive_document_status(make_doc(status="draft"), TODAY) == "draft"


def test_period_must_not_end_before_it_starts():
    with pytest.raises(ValidationError):
        DokumenCreate(
            nama_dokumen="SOP",
            jenis_dokumen="sop",
            tanggal_dokumen=TODAY,
            tanggal_berlaku_mulai=TODAY,
            tanggal_berlaku_selesai=TODAY - timedelta(days=1),
        )


async def test_register_and_access(db, make_user):
    owner = await make_user()
    stranger = await make_user()
    today = date.today()
    doc = await register_document(
        db,
        identity_of(owner),
        DokumenCreate(
            nama_dokumen="Perjanjian kerjasama 2026",
            jenis_dokumen="perjanjian_kerjasama",
            tanggal_dokumen=today,
            tanggal_berlaku_mulai=today,
            tanggal_berlaku_selesai=today + timedelta(days=10),
        ),
    )
    assert doc.status == "akan_kadaluarsa"
    with pytest.raises(ForbiddenError):
        await get_document_for_identity(db, identity_of(stranger), doc.id)


async def test_refresh_persists_derived_status(db, session_factory, make_user):
    owner = await make_user()
    doc = make_doc(TODAY - timedelta(days=100), TODAY + timedelta(days=100))
    doc.user_id = owner.id
    db.add(doc)
    await db.commit()

    assert await refresh_document_statuses(db, TODAY) == 0
    assert await refresh_document_statuses(db, TODAY + timedelta(days=80)) == 1
    assert doc.status == "akan_kadaluarsa"

    assert await refresh_document_statuses_async(session_factory, TODAY + timedelta(days=101)) == 1
    async with session_factory() as session:
        assert (await session.get(DokumenKerjasama, doc.id)).status == "kadaluarsa"


async def test_document_endpoints(client, make_user):
    owner = await make_user()
    response = await client.post(
        "/api/documents",
        json={
            "nama_dokumen": "SOP penanganan limbah B3",
            "jenis_dokumen": "sop",
            "tanggal_dokumen": "2026-01-10",
        },
        headers=auth_headers(owner),
    )
    assert response.status_code == 201
    doc_id = response.json()["data"]["id"]

    response = await client.get("/api/documents?status=aktif", headers=auth_headers(owner))
    assert [d["id"] for d in response.json()["data"]] == [doc_id]

    response = await client.post(
        "/api/documents",
        json={"nama_dokumen": "X", "jenis_dokumen": "faktur", "tanggal_dokumen": "2026-01-10"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 400

    response = await client.delete(f"/api/documents/{doc_id}", headers=auth_headers(owner))
    assert response.status_code == 200
    response = await client.get(f"/api/documents/{doc_id}", headers=auth_headers(owner))
    assert response.status_code == 404
