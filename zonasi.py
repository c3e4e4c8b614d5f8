import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


class InvalidCoordinates(ValueError):
    """Koordinat tidak valid (bukan angka, NaN/inf, atau di luar rentang)"""


def _validasi_koordinat(lat, lng):
    for label, value, batas in (('latitude', lat, 90), ('longitude', lng, 180)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCoordinates(f'{label} harus berupa angka: {value!r}')
        if not math.isfinite(value):
            raise InvalidCoordinates(f'{label} tidak boleh NaN/inf: {value!r}')
        if value < -batas or value > batas:
            raise InvalidCoordinates(f'{label} di luar rentang [-{batas}, {batas}]: {value!r}')
    return float(lat), float(lng)


def parse_koordinat(lat, lng):
    """Ubah input form/JSON (angka atau string) menjadi pasangan float yang valid"""
    try:
        lat = float(lat) if isinstance(lat, str) else lat
        lng = float(lng) if isinstance(lng, str) else lng
    except ValueError:
        raise InvalidCoordinates(f'koordinat bukan angka: {lat!r}, {lng!r}')
    return _validasi_koordinat(lat, lng)


def hitung_jarak(school_lat, school_lng, home_lat, home_lng):
    """
    Jarak great-circle (haversine) antara sekolah dan rumah pendaftar.

    Returns:
        Jarak dalam kilometer

    Raises:
        InvalidCoordinates: jika salah satu koordinat tidak valid. Jarak nol
        tidak pernah dikembalikan sebagai pengganti koordinat yang rusak.
    """
    lat1, lng1 = _validasi_koordinat(school_lat, school_lng)
    lat2, lng2 = _validasi_koordinat(home_lat, home_lng)

    lat1, lng1, lat2, lng2 = map(math.radians, [lat1, lng1, lat2, lng2])

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # pembulatan float bisa membuat a sedikit > 1 untuk titik antipodal
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def dalam_zona(distance_km, max_distance_km):
    """
    Apakah jarak masih di dalam radius zonasi (batas inklusif).

    max_distance_km <= 0 atau None berarti zonasi dimatikan: semua pendaftar
    dianggap dalam zona.
    """
    if max_distance_km is None or max_distance_km <= 0:
        return True
    return distance_km <= max_distance_km


@dataclass(frozen=True)
class LokasiSekolah:
    lat: float
    lng: float
    max_distance_km: float

    def __post_init__(self):
        _validasi_koordinat(self.lat, self.lng)
        radius = self.max_distance_km
        if radius is not None and (isinstance(radius, bool) or not isinstance(radius, (int, float))
                                   or not math.isfinite(radius)):
            raise InvalidCoordinates(f'radius zonasi harus angka berhingga: {radius!r}')

    def klasifikasi(self, home_lat, home_lng):
        """Return (jarak_km, dalam_zona) untuk satu titik rumah"""
        jarak = hitung_jarak(self.lat, self.lng, home_lat, home_lng)
        return jarak, dalam_zona(jarak, self.max_distance_km)

    def to_dict(self):
        return {
            'school_lat': self.lat,
            'school_lng': self.lng,
            'max_distance_km': self.max_distance_km,
        }
