from flask import session, jsonify, request
from functools import wraps
import html
import logging
import threading
import time

from status import Role

security_logger = logging.getLogger('security')


# ===== RATE LIMITER =====
class RateLimiter:
    """
    Sliding window per key (IP + nama bucket). Percobaan yang lebih tua dari
    window_time dibuang setiap kali key diperiksa.
    """

    def __init__(self, max_attempts=5, window_time=3600, clock=time.time):
        self.attempts = {}
        self.max_attempts = max_attempts
        self.window_time = window_time
        self.clock = clock
        self._lock = threading.Lock()

    def _evict(self, key, current_time):
        recent = [
            attempt_time for attempt_time in self.attempts.get(key, [])
            if current_time - attempt_time < self.window_time
        ]
        if recent:
            self.attempts[key] = recent
        else:
            self.attempts.pop(key, None)
        return recent

    def is_rate_limited(self, key):
        with self._lock:
            return len(self._evict(key, self.clock())) >= self.max_attempts

    def add_attempt(self, key):
        with self._lock:
            current_time = self.clock()
            self._evict(key, current_time)
            self.attempts.setdefault(key, []).append(current_time)

    def hit(self, key):
        """Catat satu request; return True jika request ini melewati batas"""
        with self._lock:
            current_time = self.clock()
            recent = self._evict(key, current_time)
            if len(recent) >= self.max_attempts:
                return True
            self.attempts.setdefault(key, []).append(current_time)
            return False

    def get_remaining_time(self, key):
        """Detik sampai percobaan tertua keluar dari window"""
        with self._lock:
            current_time = self.clock()
            recent = self._evict(key, current_time)
            if not recent:
                return 0
            return max(0, self.window_time - (current_time - min(recent)))

    def reset_attempts(self, key):
        with self._lock:
            self.attempts.pop(key, None)

    def cleanup(self):
        with self._lock:
            current_time = self.clock()
            for key in list(self.attempts):
                self._evict(key, current_time)


def client_ip():
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.remote_addr or 'unknown'


def rate_limited_response(remaining_time):
    response = jsonify({
        'success': False,
        'error': {
            'code': 'RATE_LIMIT_EXCEEDED',
            'message': 'Terlalu banyak permintaan. Silakan coba lagi nanti.',
            'retry_after': int(remaining_time),
        },
    })
    response.status_code = 429
    response.headers['Retry-After'] = str(int(remaining_time))
    return response


def rate_limit(limiter, bucket):
    """Decorator: batasi endpoint publik per IP"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            ip_address = client_ip()
            key = f'{bucket}:{ip_address}'
            if limiter.hit(key):
                log_security_event('RATE_LIMITED', ip_address, session.get('username', '-'), f'bucket={bucket}')
                return rate_limited_response(limiter.get_remaining_time(key))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


# ===== INPUT =====
def sanitize_input(input_string):
    if input_string:
        return html.escape(str(input_string).strip())
    return ''


def log_security_event(event_type, ip_address, username, details=''):
    security_logger.warning(f'{event_type} - IP: {ip_address}, User: {username}, Details: {details}')


# ===== DECORATORS =====
def _json_error(message, status_code):
    response = jsonify({'success': False, 'error': message})
    response.status_code = status_code
    return response


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return _json_error('Silakan login terlebih dahulu.', 401)
        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles):
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if 'user_id' not in session:
                return _json_error('Silakan login terlebih dahulu.', 401)
            if Role.parse(session.get('role')) not in allowed:
                log_security_event('ACCESS_DENIED', client_ip(), session.get('username'), request.path)
                return _json_error('Akses ditolak.', 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = role_required(Role.ADMIN)
staff_required = role_required(Role.ADMIN, Role.OPERATOR)
