from enum import Enum


class StatusPendaftar(str, Enum):
    DRAFT = 'draft'
    PENDING = 'pending'
    VERIFIED = 'verified'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

    @property
    def label(self):
        return _LABEL_STATUS[self]

    @classmethod
    def parse(cls, value):
        """Ubah string dari request menjadi enum; None jika tidak dikenal"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


_LABEL_STATUS = {
    StatusPendaftar.DRAFT: 'Draft',
    StatusPendaftar.PENDING: 'Menunggu Verifikasi',
    StatusPendaftar.VERIFIED: 'Terverifikasi',
    StatusPendaftar.ACCEPTED: 'Diterima',
    StatusPendaftar.REJECTED: 'Ditolak',
}

# Status yang ikut diperingkat saat proses seleksi
STATUS_ELIGIBLE = frozenset({StatusPendaftar.VERIFIED})


class Role(str, Enum):
    ADMIN = 'admin'
    OPERATOR = 'operator'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None
