from flask_sqlalchemy import SQLAlchemy
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from cryptography.fernet import Fernet, InvalidToken
import hashlib
import base64
import logging
import os

from status import StatusPendaftar, Role
from prioritas import PendaftarSnapshot, Rekomendasi
from zonasi import LokasiSekolah
import nomor_pendaftaran

db = SQLAlchemy()
logger = logging.getLogger(__name__)

# Generate encryption key
ENCRYPTION_KEY = os.environ.get('ENCRYPTION_KEY', 'spmb-dev-encryption-key-32-chars-long')
cipher_suite = Fernet(base64.urlsafe_b64encode(hashlib.sha256(ENCRYPTION_KEY.encode()).digest()))


def encrypt_data(data):
    """Encrypt data menggunakan symmetric encryption"""
    if data is None or data == '':
        return data
    return cipher_suite.encrypt(data.encode()).decode()


def decrypt_data(encrypted_data):
    """Decrypt data menggunakan symmetric encryption"""
    if encrypted_data is None or encrypted_data == '':
        return encrypted_data
    try:
        return cipher_suite.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        # data lama yang tersimpan sebelum dienkripsi
        logger.warning('Decryption failed, returning stored value as-is')
        return encrypted_data


def hash_nik(nik):
    return hashlib.sha256(nik.encode()).hexdigest()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(Role, values_callable=_enum_values, native_enum=False, length=10),
                     nullable=False, default=Role.OPERATOR)
    nama = db.Column(db.Text, nullable=False)
    tanggal_daftar = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def nama_decrypted(self):
        return decrypt_data(self.nama)


class Periode(db.Model):
    __tablename__ = 'spmb_periode'

    id = db.Column(db.Integer, primary_key=True)
    nama = db.Column(db.String(100), nullable=False)
    tahun_ajaran = db.Column(db.String(9), nullable=False)
    tanggal_mulai = db.Column(db.Date, nullable=False)
    tanggal_selesai = db.Column(db.Date, nullable=False)
    kuota = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pendaftar = db.relationship('Pendaftar', backref='periode', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'nama': self.nama,
            'tahun_ajaran': self.tahun_ajaran,
            'tanggal_mulai': self.tanggal_mulai.isoformat(),
            'tanggal_selesai': self.tanggal_selesai.isoformat(),
            'kuota': self.kuota,
            'is_active': self.is_active,
            'jumlah_pendaftar': self.pendaftar.count(),
        }


class Pendaftar(db.Model):
    __tablename__ = 'spmb_pendaftar'

    id = db.Column(db.Integer, primary_key=True)
    nomor_pendaftaran = db.Column(db.String(14), unique=True, nullable=False, index=True)
    periode_id = db.Column(db.Integer, db.ForeignKey('spmb_periode.id'), nullable=False, index=True)

    # Data siswa - nik dan no_hp dienkripsi, nik_hash untuk cek duplikat
    nama_lengkap = db.Column(db.String(100), nullable=False)
    nik = db.Column(db.Text, nullable=False)
    nik_hash = db.Column(db.String(64), unique=True, nullable=False)
    tanggal_lahir = db.Column(db.Date, nullable=False)
    tempat_lahir = db.Column(db.String(50), default='')
    jenis_kelamin = db.Column(db.String(1), nullable=False)
    asal_sekolah = db.Column(db.String(100), default='')

    nama_orang_tua = db.Column(db.String(100), default='')
    no_hp_orang_tua = db.Column(db.Text, default='')
    email_orang_tua = db.Column(db.String(120), default='')
    alamat = db.Column(db.Text, default='')

    # Lokasi & zonasi
    home_lat = db.Column(db.Float, nullable=True)
    home_lng = db.Column(db.Float, nullable=True)
    jarak_ke_sekolah = db.Column(db.Float, nullable=True)
    dalam_zona = db.Column(db.Boolean, default=False)

    status = db.Column(db.Enum(StatusPendaftar, values_callable=_enum_values, native_enum=False, length=20),
                       default=StatusPendaftar.DRAFT, nullable=False, index=True)
    catatan = db.Column(db.Text, nullable=True)
    peringkat = db.Column(db.Integer, nullable=True)
    kelompok_usia = db.Column(db.Integer, nullable=True)
    verified_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def nik_decrypted(self):
        return decrypt_data(self.nik)

    @property
    def no_hp_orang_tua_decrypted(self):
        return decrypt_data(self.no_hp_orang_tua)

    def set_nik(self, nik):
        self.nik = encrypt_data(nik)
        self.nik_hash = hash_nik(nik)

    def to_snapshot(self):
        return PendaftarSnapshot(
            id=self.id,
            tanggal_lahir=self.tanggal_lahir,
            jarak_ke_sekolah=self.jarak_ke_sekolah,
            created_at=self.created_at,
            status=self.status,
            nama=self.nama_lengkap,
            nomor_pendaftaran=self.nomor_pendaftaran,
            dalam_zona=self.dalam_zona,
        )

    def to_status_dict(self):
        """Data publik untuk cek status - tanpa data pribadi"""
        return {
            'nomor_pendaftaran': self.nomor_pendaftaran,
            'nama_lengkap': self.nama_lengkap,
            'status': self.status.value,
            'status_label': self.status.label,
            'dalam_zona': self.dalam_zona,
            'jarak_ke_sekolah': self.jarak_ke_sekolah,
            'peringkat': self.peringkat,
            'registered_at': self.created_at.isoformat() if self.created_at else None,
            'periode': self.periode.nama if self.periode else None,
            'catatan': self.catatan,
        }

    def to_dict(self):
        data = self.to_status_dict()
        data.update({
            'id': self.id,
            'periode_id': self.periode_id,
            'nik': self.nik_decrypted,
            'tanggal_lahir': self.tanggal_lahir.isoformat(),
            'tempat_lahir': self.tempat_lahir,
            'jenis_kelamin': self.jenis_kelamin,
            'asal_sekolah': self.asal_sekolah,
            'nama_orang_tua': self.nama_orang_tua,
            'no_hp_orang_tua': self.no_hp_orang_tua_decrypted,
            'email_orang_tua': self.email_orang_tua,
            'alamat': self.alamat,
            'home_lat': self.home_lat,
            'home_lng': self.home_lng,
            'kelompok_usia': self.kelompok_usia,
            'verified_at': self.verified_at.isoformat() if self.verified_at else None,
        })
        return data


class PengaturanSekolah(db.Model):
    __tablename__ = 'pengaturan_sekolah'

    id = db.Column(db.Integer, primary_key=True)
    nama_sekolah = db.Column(db.String(200), default='')
    school_lat = db.Column(db.Float, nullable=False)
    school_lng = db.Column(db.Float, nullable=False)
    max_distance_km = db.Column(db.Float, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ===== PERSISTENCE HELPERS =====
def periode_aktif():
    aktif = Periode.query.filter_by(is_active=True).order_by(Periode.created_at.desc()).all()
    if len(aktif) > 1:
        logger.warning('Found %d active periods, using id=%s', len(aktif), aktif[0].id)
    return aktif[0] if aktif else None


def aktifkan_periode(periode):
    """
    Jadikan periode ini satu-satunya periode aktif. Menonaktifkan periode lain
    dan mengaktifkan target di session yang sama; caller yang commit.
    """
    Periode.query.filter(Periode.id != periode.id, Periode.is_active.is_(True)) \
        .update({Periode.is_active: False}, synchronize_session='fetch')
    periode.is_active = True


def lokasi_sekolah(config):
    """Titik acuan sekolah: dari tabel pengaturan, atau dari app.config jika belum diisi"""
    pengaturan = PengaturanSekolah.query.first()
    if pengaturan:
        return LokasiSekolah(pengaturan.school_lat, pengaturan.school_lng, pengaturan.max_distance_km)
    return LokasiSekolah(config['SCHOOL_LAT'], config['SCHOOL_LNG'], config['MAX_DISTANCE_KM'])


def generate_nomor_pendaftaran(tahun):
    nomor_tahun_ini = db.session.query(Pendaftar.nomor_pendaftaran) \
        .filter(Pendaftar.nomor_pendaftaran.like(f'{nomor_pendaftaran.PREFIX}-{tahun}-%')).all()
    urutan = [nomor_pendaftaran.parse(n).urutan for (n,) in nomor_tahun_ini]
    return nomor_pendaftaran.nomor_berikutnya(tahun, max(urutan, default=0))


def simpan_peringkat(hasil):
    """Tulis hasil perankingan ke session: (id, peringkat, status). Caller yang commit."""
    pendaftar = {p.id: p for p in Pendaftar.query.filter(
        Pendaftar.id.in_([h.pendaftar.id for h in hasil])).all()}

    for h in hasil:
        p = pendaftar[h.pendaftar.id]
        p.peringkat = h.rank
        p.kelompok_usia = int(h.kelompok)
        if h.rekomendasi == Rekomendasi.ACCEPTED:
            p.status = StatusPendaftar.ACCEPTED
            p.catatan = None
        elif h.rekomendasi == Rekomendasi.REJECTED:
            p.status = StatusPendaftar.REJECTED
            p.catatan = None
        else:
            p.status = StatusPendaftar.VERIFIED
            p.catatan = f'Daftar tunggu - Urutan ke-{h.rank}'


def statistik(periode_id=None):
    query = Pendaftar.query
    if periode_id is not None:
        query = query.filter_by(periode_id=periode_id)

    total = query.count()
    data = {'total': total}
    for status in StatusPendaftar:
        data[status.value] = query.filter(Pendaftar.status == status).count()
    data['dalam_zona'] = query.filter(Pendaftar.dalam_zona.is_(True)).count()
    data['luar_zona'] = total - data['dalam_zona']
    return data
