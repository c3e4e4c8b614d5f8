import re
from dataclasses import dataclass

PREFIX = 'SPMB'
POLA_NOMOR = re.compile(r'^SPMB-([0-9]{4})-([0-9]{4})$')
URUTAN_MAKS = 9999


class MalformedRegistrationNumber(ValueError):
    """Nomor pendaftaran tidak sesuai format SPMB-YYYY-NNNN"""


@dataclass(frozen=True)
class NomorPendaftaran:
    tahun: int
    urutan: int

    def __str__(self):
        return format_nomor(self.tahun, self.urutan)


def format_nomor(tahun, urutan):
    if not 1 <= urutan <= URUTAN_MAKS:
        raise ValueError(f'Urutan pendaftaran harus 1-{URUTAN_MAKS}: {urutan}')
    if not 1000 <= tahun <= 9999:
        raise ValueError(f'Tahun tidak valid: {tahun}')
    return f'{PREFIX}-{tahun:04d}-{urutan:04d}'


def parse(value):
    """
    Parse nomor pendaftaran publik. Spasi di awal dan akhir dibuang dulu
    (input dari form atau query string), lalu hanya bentuk persis
    SPMB-YYYY-NNNN yang diterima; huruf kecil, spasi di tengah, digit non-ASCII,
    atau urutan 0000 ditolak.
    """
    if not isinstance(value, str):
        raise MalformedRegistrationNumber(f'Nomor pendaftaran harus berupa teks: {value!r}')

    match = POLA_NOMOR.match(value.strip())
    if not match:
        raise MalformedRegistrationNumber(f'Format nomor pendaftaran tidak valid: {value!r}')

    tahun, urutan = int(match.group(1)), int(match.group(2))
    if urutan == 0:
        raise MalformedRegistrationNumber(f'Urutan pendaftaran tidak boleh 0000: {value!r}')
    return NomorPendaftaran(tahun=tahun, urutan=urutan)


def is_valid(value):
    try:
        parse(value)
    except MalformedRegistrationNumber:
        return False
    return True


def nomor_berikutnya(tahun, urutan_terakhir):
    """Nomor berikutnya setelah urutan terbesar yang sudah terpakai di tahun itu"""
    return format_nomor(tahun, (urutan_terakhir or 0) + 1)
