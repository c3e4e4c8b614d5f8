"""
Prioritas penerimaan peserta didik baru.

Urutan prioritas:
1. Kelompok usia pada tanggal acuan: 7 tahun ke atas > 6 tahun > di bawah 6 tahun
2. Dalam kelompok yang sama, bulan+tahun lahir lebih awal (lebih tua) didahulukan
3. Jika bulan+tahun lahir sama: jarak ke sekolah terdekat didahulukan
4. Jika jarak juga sama: waktu pendaftaran lebih awal didahulukan

Semua fungsi di sini murni (tanpa I/O, tanpa state bersama).
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, IntEnum

from status import STATUS_ELIGIBLE, StatusPendaftar


class InvalidPeriod(ValueError):
    """Konfigurasi periode tidak bisa dipakai untuk perankingan (mis. kuota negatif)"""


class KelompokUsia(IntEnum):
    TUJUH_PLUS = 1
    ENAM = 2
    DI_BAWAH_ENAM = 3

    @property
    def label(self):
        return {
            KelompokUsia.TUJUH_PLUS: 'Prioritas Utama (7 tahun ke atas)',
            KelompokUsia.ENAM: 'Prioritas Kedua (6 tahun)',
            KelompokUsia.DI_BAWAH_ENAM: 'Prioritas Terendah (<6 tahun)',
        }[self]


class Rekomendasi(str, Enum):
    ACCEPTED = 'accepted'
    WAITLIST = 'waitlist'
    REJECTED = 'rejected'


@dataclass(frozen=True)
class Usia:
    tahun: int
    bulan: int
    hari: int

    @property
    def total_bulan(self):
        return self.tahun * 12 + self.bulan

    @property
    def kelompok(self):
        if self.tahun >= 7:
            return KelompokUsia.TUJUH_PLUS
        if self.tahun == 6:
            return KelompokUsia.ENAM
        return KelompokUsia.DI_BAWAH_ENAM

    def format(self):
        if self.tahun == 0:
            return f'{self.bulan} bulan'
        if self.bulan == 0:
            return f'{self.tahun} tahun'
        return f'{self.tahun} tahun {self.bulan} bulan'


@dataclass(frozen=True)
class PendaftarSnapshot:
    """Data pendaftar yang dibutuhkan perankingan, dibekukan untuk satu kali proses"""
    id: object
    tanggal_lahir: date
    jarak_ke_sekolah: float = None
    created_at: datetime = None
    status: str = StatusPendaftar.VERIFIED
    nama: str = ''
    nomor_pendaftaran: str = ''
    dalam_zona: bool = None


@dataclass
class HasilPeringkat:
    rank: int
    pendaftar: PendaftarSnapshot
    usia: Usia
    rekomendasi: Rekomendasi = None

    @property
    def kelompok(self):
        return self.usia.kelompok

    def to_dict(self):
        p = self.pendaftar
        return {
            'id': p.id,
            'rank': self.rank,
            'nomor_pendaftaran': p.nomor_pendaftaran,
            'nama': p.nama,
            'tanggal_lahir': p.tanggal_lahir.isoformat(),
            'usia': self.usia.format(),
            'kelompok_usia': int(self.kelompok),
            'kelompok_usia_label': self.kelompok.label,
            'jarak_ke_sekolah': p.jarak_ke_sekolah,
            'dalam_zona': p.dalam_zona,
            'registered_at': p.created_at.isoformat() if p.created_at else None,
            'status': _nilai(p.status),
            'rekomendasi': self.rekomendasi.value if self.rekomendasi else None,
        }


def _nilai(status):
    return status.value if isinstance(status, Enum) else status


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def tanggal_acuan(tahun_ajaran=None, hari_ini=None):
    """
    Tanggal acuan perhitungan usia: 1 Juli tahun awal tahun ajaran.
    Tahun ajaran "2025/2026" -> 1 Juli 2025.
    """
    if tahun_ajaran:
        try:
            tahun = int(str(tahun_ajaran).split('/')[0].strip())
        except ValueError:
            raise InvalidPeriod(f'Tahun ajaran tidak valid: {tahun_ajaran!r}')
    else:
        tahun = (hari_ini or date.today()).year
    return date(tahun, 7, 1)


def hitung_usia(tanggal_lahir, acuan):
    lahir = _as_date(tanggal_lahir)
    acuan = _as_date(acuan)

    tahun = acuan.year - lahir.year
    bulan = acuan.month - lahir.month
    hari = acuan.day - lahir.day

    if hari < 0:
        bulan -= 1
        # jumlah hari di bulan sebelum bulan acuan
        awal_bulan = acuan.replace(day=1)
        hari_bulan_lalu = (awal_bulan - date.resolution).day
        hari += hari_bulan_lalu

    if bulan < 0:
        tahun -= 1
        bulan += 12

    return Usia(tahun=tahun, bulan=bulan, hari=hari)


def kelompok_usia(tanggal_lahir, acuan):
    return hitung_usia(tanggal_lahir, acuan).kelompok


def _jarak_key(jarak):
    if jarak is None:
        return (1, 0.0)
    return (0, round(jarak, 2))


def _waktu_key(created_at):
    if created_at is None:
        return (0, datetime.min)
    return (1, created_at)


def kunci_prioritas(pendaftar, acuan):
    """
    Kunci urut leksikografis. Bentuk tuple menjamin urutan total dan
    transitif; bandingkan() dan ranking() sama-sama memakai kunci ini.
    """
    lahir = _as_date(pendaftar.tanggal_lahir)
    return (
        int(kelompok_usia(lahir, acuan)),
        (lahir.year, lahir.month),
        _jarak_key(pendaftar.jarak_ke_sekolah),
        _waktu_key(pendaftar.created_at),
    )


def bandingkan(a, b, acuan):
    """Negatif jika a lebih prioritas, positif jika b lebih prioritas, 0 jika setara"""
    ka = kunci_prioritas(a, acuan)
    kb = kunci_prioritas(b, acuan)
    return (ka > kb) - (ka < kb)


def validasi_kuota(kuota):
    if kuota is None:
        return 0
    if isinstance(kuota, bool) or not isinstance(kuota, int):
        raise InvalidPeriod(f'Kuota harus bilangan bulat: {kuota!r}')
    if kuota < 0:
        raise InvalidPeriod(f'Kuota tidak boleh negatif: {kuota}')
    return kuota


def rekomendasi_untuk(rank, usia, kuota):
    if rank <= kuota:
        return Rekomendasi.ACCEPTED
    if usia.kelompok == KelompokUsia.DI_BAWAH_ENAM:
        return Rekomendasi.REJECTED
    return Rekomendasi.WAITLIST


def ranking(pendaftar, kuota, acuan):
    """
    Urutkan pendaftar terverifikasi dalam satu periode dan beri peringkat 1..N.

    Kuota 0/None atau tidak ada pendaftar eligible menghasilkan list kosong.
    Kuota negatif raise InvalidPeriod. Pendaftar dengan status lain tidak
    disentuh dan tidak muncul di hasil.
    """
    kuota = validasi_kuota(kuota)
    if kuota == 0:
        return []

    eligible = [p for p in pendaftar if StatusPendaftar.parse(p.status) in STATUS_ELIGIBLE]
    if not eligible:
        return []

    # sorted() stabil: pendaftar yang benar-benar setara tetap di urutan input
    urut = sorted(eligible, key=lambda p: kunci_prioritas(p, acuan))

    hasil = []
    for i, p in enumerate(urut, 1):
        usia = hitung_usia(p.tanggal_lahir, acuan)
        hasil.append(HasilPeringkat(
            rank=i,
            pendaftar=p,
            usia=usia,
            rekomendasi=rekomendasi_untuk(i, usia, kuota),
        ))
    return hasil


@dataclass
class Ringkasan:
    total: int = 0
    accepted: int = 0
    waitlist: int = 0
    rejected: int = 0

    def to_dict(self):
        return {
            'total_processed': self.total,
            'accepted': self.accepted,
            'waitlist': self.waitlist,
            'rejected': self.rejected,
        }


def ringkasan(hasil):
    r = Ringkasan(total=len(hasil))
    for h in hasil:
        if h.rekomendasi == Rekomendasi.ACCEPTED:
            r.accepted += 1
        elif h.rekomendasi == Rekomendasi.REJECTED:
            r.rejected += 1
        else:
            r.waitlist += 1
    return r
