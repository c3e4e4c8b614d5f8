"""
Root pytest configuration.

Provides:
- In-memory SQLite database per test
- Shared fixtures (app, client, admin_client, operator_client, periode)
"""

import os
import sys
import tempfile
from datetime import date
from pathlib import Path

# Env harus di-set sebelum spmb diimport (config dibaca saat import)
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='spmb-logs-'))
os.environ.setdefault('SCHOOL_LAT', '-6.200000')
os.environ.setdefault('SCHOOL_LNG', '106.816666')
os.environ.setdefault('MAX_DISTANCE_KM', '3')

root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

import pytest

SCHOOL_LAT = -6.2
SCHOOL_LNG = 106.816666


@pytest.fixture
def app():
    """Flask app dengan database kosong."""
    import spmb
    from models import db

    spmb.app.config['TESTING'] = True
    for limiter in (spmb.login_limiter, spmb.daftar_limiter, spmb.status_limiter):
        limiter.attempts.clear()

    with spmb.app.app_context():
        db.create_all()
        yield spmb.app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _buat_user(username, password, role):
    from models import db, User, encrypt_data

    user = User(username=username, role=role, nama=encrypt_data(username.title()))
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_client(app):
    from status import Role

    _buat_user('admin', 'rahasia123', Role.ADMIN)
    client = app.test_client()
    response = client.post('/api/admin/login', json={'username': 'admin', 'password': 'rahasia123'})
    assert response.status_code == 200
    return client


@pytest.fixture
def operator_client(app):
    from status import Role

    _buat_user('operator', 'rahasia123', Role.OPERATOR)
    client = app.test_client()
    response = client.post('/api/admin/login', json={'username': 'operator', 'password': 'rahasia123'})
    assert response.status_code == 200
    return client


@pytest.fixture
def periode(app):
    """Periode aktif tahun ajaran 2025/2026 (tanggal acuan usia 1 Juli 2025)."""
    from models import db, Periode

    p = Periode(
        nama='SPMB 2025',
        tahun_ajaran='2025/2026',
        tanggal_mulai=date(2025, 5, 1),
        tanggal_selesai=date(2025, 6, 30),
        kuota=2,
        is_active=True,
    )
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def payload_pendaftar():
    """Payload pendaftaran publik yang valid; dipakai dengan dict(payload, ...)."""
    return {
        'nama_lengkap': 'Budi Santoso',
        'nik': '3171010101190001',
        'tanggal_lahir': '2018-03-15',
        'tempat_lahir': 'Jakarta',
        'jenis_kelamin': 'L',
        'asal_sekolah': 'TK Melati',
        'nama_orang_tua': 'Santoso',
        'no_hp_orang_tua': '081234567890',
        'email_orang_tua': 'santoso@example.com',
        'alamat': 'Jl. Merdeka No. 1, Jakarta Pusat',
        'home_lat': -6.205,
        'home_lng': 106.82,
    }
