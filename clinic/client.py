"""
HTTP client for the AllCare API.

A thin wrapper over :mod:`requests` used by scripts and front-ends that
talk to the backend.  Every call attaches the stored bearer token.  A
``401`` on an authenticated call means the session is gone: the stored
token is cleared, the ``on_logout`` callback runs and
:class:`SessionExpired` is raised.  Everything else that is not a 2xx
becomes :class:`ApiError`; network failures become
:class:`ApiConnectionError`.  Nothing is retried.
"""
from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional

import requests

from .services.queue import build_provider_queues

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FILE = '~/.allcare/token'


class ApiError(Exception):
    """Non-2xx response other than an authenticated 401."""

    def __init__(self, status: int, message: str, code: str = '', payload: Any = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.code = code
        self.payload = payload


class SessionExpired(ApiError):
    """The server rejected the bearer token; the caller has been logged out."""

    def __init__(self, message: str = 'Session expired'):
        super().__init__(401, message, code='not_authenticated')


class ApiConnectionError(ConnectionError):
    """The server could not be reached."""


class TokenStore:
    """Keeps the access token in a file so separate processes share a session.

    The path comes from ``ALLCARE_TOKEN_FILE`` and defaults to
    ``~/.allcare/token``.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(os.path.expanduser(path or os.getenv('ALLCARE_TOKEN_FILE', DEFAULT_TOKEN_FILE)))

    def get(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding='utf-8').strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding='utf-8')
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug('Could not restrict permissions of %s', self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class MemoryTokenStore:
    """Process-local token store."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


def _error_message(response: requests.Response) -> tuple[str, str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or 'Request failed', '', None
    if isinstance(payload, dict):
        error = payload.get('error')
        if isinstance(error, dict):
            return str(error.get('message') or 'Request failed'), str(error.get('code') or ''), payload
        if payload.get('detail'):
            return str(payload['detail']), '', payload
    return 'Request failed', '', payload


class AllCareClient:
    """Client for the AllCare REST API."""

    def __init__(
        self,
        base_url: str,
        token_store=None,
        on_logout: Optional[Callable[[], None]] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError('base_url is required')
        self.base_url = base_url.rstrip('/')
        self.token_store = token_store if token_store is not None else TokenStore()
        self.on_logout = on_logout
        self.timeout = timeout
        self.session = session or requests.Session()
        self.refresh_token: Optional[str] = None

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def _request(self, method: str, endpoint: str, *, auth: bool = True, **kwargs) -> Any:
        """Send one request and decode the JSON body (``None`` for 204)."""
        url = f"{self.base_url}{endpoint}"
        headers = {'Accept': 'application/json'}
        headers.update(kwargs.pop('headers', None) or {})
        token = self.token_store.get() if auth else None
        if token:
            headers['Authorization'] = f"Bearer {token}"
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error('Request error %s %s: %s', method, endpoint, e)
            raise ApiConnectionError(f"Request error: {e}") from e

        if response.status_code == 401 and token:
            message, _, _ = _error_message(response)
            logger.warning('Session rejected on %s %s, logging out', method, endpoint)
            self._force_logout()
            raise SessionExpired(message)
        if response.status_code >= 400:
            message, code, payload = _error_message(response)
            logger.error('API error %s on %s %s: %s', response.status_code, method, endpoint, message)
            raise ApiError(response.status_code, message, code=code, payload=payload)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _force_logout(self) -> None:
        self.token_store.clear()
        if self.on_logout is not None:
            self.on_logout()

    def _get(self, endpoint: str, **params) -> Any:
        return self._request('GET', endpoint, params={k: v for k, v in params.items() if v is not None})

    def _post(self, endpoint: str, payload: Optional[dict] = None) -> Any:
        return self._request('POST', endpoint, json=payload or {})

    def _put(self, endpoint: str, payload: Optional[dict] = None) -> Any:
        return self._request('PUT', endpoint, json=payload or {})

    def _delete(self, endpoint: str) -> Any:
        return self._request('DELETE', endpoint)

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------
    @property
    def is_authenticated(self) -> bool:
        return bool(self.token_store.get())

    def login(self, username: str, password: str) -> dict:
        """Log in and store the access token; returns the user payload."""
        data = self._request('POST', '/api/auth/login', auth=False,
                             json={'username': username, 'password': password})
        self.token_store.set(data['token'])
        self.refresh_token = data.get('refresh')
        return data['user']

    def logout(self) -> None:
        """Blacklist the refresh token server side and drop the local session."""
        try:
            if self.token_store.get():
                self._post('/api/auth/logout', {'refresh': self.refresh_token})
        except SessionExpired:
            return
        except (ApiError, ApiConnectionError) as e:
            logger.warning('Server logout failed: %s', e)
        self.refresh_token = None
        self._force_logout()

    def me(self) -> dict:
        return self._get('/api/auth/me')

    def update_profile(self, **fields) -> dict:
        return self._put('/api/auth/profile', fields)

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self._put('/api/auth/change-password',
                         {'currentPassword': current_password, 'newPassword': new_password})

    def allowed_routes(self) -> list[str]:
        return self._get('/api/auth/routes')['routes']

    # ------------------------------------------------------------------
    # patients
    # ------------------------------------------------------------------
    def patients(self, q: Optional[str] = None, type: Optional[str] = None,
                 page: Optional[int] = None, page_size: Optional[int] = None) -> Any:
        return self._get('/api/patients', q=q, type=type, page=page, pageSize=page_size)

    def patient(self, patient_id: int) -> dict:
        return self._get(f'/api/patients/{patient_id}')

    def create_patient(self, payload: dict) -> dict:
        return self._post('/api/patients', payload)

    def update_patient(self, patient_id: int, payload: dict) -> dict:
        return self._put(f'/api/patients/{patient_id}', payload)

    def delete_patient(self, patient_id: int) -> None:
        return self._delete(f'/api/patients/{patient_id}')

    # ------------------------------------------------------------------
    # appointments
    # ------------------------------------------------------------------
    def appointments(self, day: Optional[date] = None, staff_id: Optional[int] = None,
                     status: Optional[str] = None) -> list[dict]:
        return self._get('/api/appointments', date=day.isoformat() if day else None,
                         staffId=staff_id, status=status)

    def create_appointment(self, payload: dict) -> dict:
        return self._post('/api/appointments', payload)

    def update_appointment(self, appointment_id: int, payload: dict) -> dict:
        return self._put(f'/api/appointments/{appointment_id}', payload)

    def set_appointment_status(self, appointment_id: int, status: str, reason: str = '') -> dict:
        return self._put(f'/api/appointments/{appointment_id}/status', {'status': status, 'reason': reason})

    def cancel_appointment(self, appointment_id: int, reason: str = '') -> dict:
        return self._put(f'/api/appointments/{appointment_id}/cancel', {'reason': reason})

    def appointment_queue(self, day: Optional[date] = None) -> list[dict]:
        """Per-provider queues of ``day`` ordered locally with the server's rules."""
        day = day or date.today()
        appointments = self.appointments(day=day)
        staff = self.staff()
        return build_provider_queues(appointments, staff, day)

    # ------------------------------------------------------------------
    # billing & treasury
    # ------------------------------------------------------------------
    def bills(self, status: Optional[str] = None, patient_id: Optional[int] = None) -> list[dict]:
        return self._get('/api/billing', status=status, patientId=patient_id)

    def bill(self, bill_id: int) -> dict:
        return self._get(f'/api/billing/{bill_id}')

    def create_bill(self, patient_id: int, items: list[dict]) -> dict:
        return self._post('/api/billing', {'patientId': patient_id, 'items': items})

    def pay_bill(self, bill_id: int, amount, method: Optional[str] = None, details: Optional[dict] = None) -> dict:
        payload = {'amount': str(amount)}
        if method:
            payload['method'] = method
        if details:
            payload['details'] = details
        return self._post(f'/api/billing/{bill_id}/pay', payload)

    def refund_bill(self, bill_id: int, amount, reason: str = '', method: Optional[str] = None) -> dict:
        payload = {'amount': str(amount), 'reason': reason}
        if method:
            payload['method'] = method
        return self._post(f'/api/billing/{bill_id}/refund', payload)

    def cancel_bill_service(self, bill_id: int) -> dict:
        return self._post(f'/api/billing/{bill_id}/cancel-service')

    def transactions(self, type: Optional[str] = None) -> list[dict]:
        return self._get('/api/treasury/transactions', type=type)

    def add_expense(self, payload: dict) -> dict:
        return self._post('/api/treasury/expenses', payload)

    # ------------------------------------------------------------------
    # admissions & wards
    # ------------------------------------------------------------------
    def admissions(self) -> list[dict]:
        return self._get('/api/admissions')

    def admission(self, admission_id: int) -> dict:
        return self._get(f'/api/admissions/{admission_id}')

    def admit(self, payload: dict) -> dict:
        return self._post('/api/admissions', payload)

    def confirm_admission(self, admission_id: int) -> dict:
        return self._post(f'/api/admissions/{admission_id}/confirm')

    def cancel_admission(self, admission_id: int) -> dict:
        return self._post(f'/api/admissions/{admission_id}/cancel')

    def add_clinical_note(self, admission_id: int, note: str, vitals: Optional[dict] = None) -> dict:
        return self._post(f'/api/admissions/{admission_id}/notes', {'note': note, 'vitals': vitals or {}})

    def generate_settlement(self, admission_id: int) -> dict:
        return self._post(f'/api/admissions/{admission_id}/settlement')

    def discharge(self, admission_id: int, discharge_notes: str, discharge_status: str) -> dict:
        return self._post(f'/api/admissions/{admission_id}/discharge',
                          {'dischargeNotes': discharge_notes, 'dischargeStatus': discharge_status})

    def beds(self, status: Optional[str] = None) -> list[dict]:
        return self._get('/api/config/beds', status=status)

    def mark_bed_clean(self, bed_id: int) -> dict:
        return self._post(f'/api/config/beds/{bed_id}/clean')

    def ward_stats(self) -> dict:
        return self._get('/api/wards/stats')

    # ------------------------------------------------------------------
    # staff & HR
    # ------------------------------------------------------------------
    def staff(self, type: Optional[str] = None) -> list[dict]:
        return self._get('/api/staff', type=type)

    def create_staff(self, payload: dict) -> dict:
        return self._post('/api/staff', payload)

    def mark_attendance(self, payload: dict) -> dict:
        return self._post('/api/hr/attendance', payload)

    def generate_payroll(self, month: str) -> list[dict]:
        return self._post('/api/hr/payroll/generate', {'month': month})

    # ------------------------------------------------------------------
    # medical services & pharmacy
    # ------------------------------------------------------------------
    def request_lab_tests(self, patient_id: int, test_ids: list[int]) -> dict:
        return self._post('/api/lab/requests', {'patientId': patient_id, 'testIds': test_ids})

    def operations(self) -> list[dict]:
        return self._get('/api/operations')

    def inventory(self, low_stock: bool = False) -> list[dict]:
        return self._get('/api/pharmacy/inventory', lowStock='1' if low_stock else None)

    def dispense(self, patient_id: int, items: list[dict], payment_method: Optional[str] = None) -> dict:
        return self._post('/api/pharmacy/dispense',
                          {'patientId': patient_id, 'items': items, 'paymentMethod': payment_method})

    # ------------------------------------------------------------------
    # records, reports, configuration
    # ------------------------------------------------------------------
    def records(self, q: Optional[str] = None, type: Optional[str] = None, status: Optional[str] = None,
                page: Optional[int] = None) -> dict:
        return self._get('/api/records', q=q, type=type, status=status, page=page)

    def dashboard(self) -> dict:
        return self._get('/api/dashboard')

    def report_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        return self._get('/api/reports/summary', start=start.isoformat() if start else None,
                         end=end.isoformat() if end else None)

    def public_settings(self) -> dict:
        return self._request('GET', '/api/config/settings/public', auth=False)

    def notifications(self, unread_only: bool = False) -> dict:
        return self._get('/api/notifications', unread='1' if unread_only else None)
