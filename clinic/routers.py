"""
URL mappings for the AllCare API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``) so
the paths match what the front-end and :mod:`clinic.client` call.
"""
from django.urls import include, path

from .auth_views import (
    change_password_view,
    login_view,
    logout_view,
    me_view,
    profile_view,
    refresh_view,
    routes_view,
)
from .views import (
    admissions,
    appointments,
    billing,
    config,
    dashboard,
    health,
    hr,
    medical,
    notifications,
    patients,
    pharmacy,
    records,
    reports,
    staff,
)


def _catalog_patterns():
    patterns = []
    for slug, serializer_cls in config.CATALOGS.items():
        collection, detail = config.catalog_views(serializer_cls)
        patterns += [
            path(f'api/config/{slug}', collection),
            path(f'api/config/{slug}/<int:pk>', detail),
        ]
    return patterns


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view),
    path('api/auth/refresh', refresh_view),
    path('api/auth/logout', logout_view),
    path('api/auth/me', me_view),
    path('api/auth/profile', profile_view),
    path('api/auth/change-password', change_password_view),
    path('api/auth/routes', routes_view),
    # Dashboard & reports
    path('api/dashboard', dashboard.dashboard),
    path('api/reports/summary', reports.summary),
    path('api/records', records.records),
    # Patients
    path('api/patients', patients.patients),
    path('api/patients/<int:pk>', patients.patient_detail),
    # Appointments
    path('api/appointments', appointments.appointments),
    path('api/appointments/queue', appointments.appointment_queue),
    path('api/appointments/<int:pk>', appointments.appointment_detail),
    path('api/appointments/<int:pk>/status', appointments.appointment_status),
    path('api/appointments/<int:pk>/cancel', appointments.appointment_cancel),
    # Billing & treasury
    path('api/billing', billing.bills),
    path('api/billing/<int:pk>', billing.bill_detail),
    path('api/billing/<int:pk>/pay', billing.bill_pay),
    path('api/billing/<int:pk>/refund', billing.bill_refund),
    path('api/billing/<int:pk>/cancel-service', billing.bill_cancel_service),
    path('api/treasury/transactions', billing.transactions),
    path('api/treasury/expenses', billing.expenses),
    path('api/treasury/expenses/<int:pk>', billing.expense_detail),
    # Admissions & wards
    path('api/admissions', admissions.admissions),
    path('api/admissions/history', admissions.admission_history),
    path('api/admissions/<int:pk>', admissions.admission_detail),
    path('api/admissions/<int:pk>/confirm', admissions.admission_confirm),
    path('api/admissions/<int:pk>/cancel', admissions.admission_cancel),
    path('api/admissions/<int:pk>/notes', admissions.admission_notes),
    path('api/admissions/<int:pk>/settlement', admissions.admission_settlement),
    path('api/admissions/<int:pk>/discharge', admissions.admission_discharge),
    path('api/wards/stats', admissions.ward_stats),
    path('api/wards/board', admissions.ward_board),
    # Staff & HR
    path('api/staff', staff.staff_list),
    path('api/staff/<int:pk>', staff.staff_detail),
    path('api/hr/attendance', hr.attendance),
    path('api/hr/leaves', hr.leaves),
    path('api/hr/leaves/<int:pk>/status', hr.leave_status),
    path('api/hr/payroll', hr.payroll),
    path('api/hr/payroll/generate', hr.payroll_generate),
    path('api/hr/payroll/<int:pk>/status', hr.payroll_status),
    path('api/hr/financials', hr.financials),
    # Medical services
    path('api/lab/requests', medical.lab_requests),
    path('api/lab/requests/<int:pk>/confirm', medical.lab_request_confirm),
    path('api/lab/requests/<int:pk>/complete', medical.lab_request_complete),
    path('api/nurse/requests', medical.nurse_requests),
    path('api/nurse/requests/<int:pk>/complete', medical.nurse_request_complete),
    path('api/operations', medical.operations),
    path('api/operations/<int:pk>/process', medical.operation_process),
    path('api/operations/<int:pk>/confirm', medical.operation_confirm),
    path('api/operations/<int:pk>/complete', medical.operation_complete),
    # Pharmacy
    path('api/pharmacy/inventory', pharmacy.inventory),
    path('api/pharmacy/inventory/create', pharmacy.inventory_create),
    path('api/pharmacy/inventory/stats', pharmacy.inventory_stats),
    path('api/pharmacy/inventory/<int:pk>', pharmacy.inventory_detail),
    path('api/pharmacy/dispense', pharmacy.dispense),
    # Notifications
    path('api/notifications', notifications.notifications),
    path('api/notifications/read-all', notifications.notifications_read_all),
    path('api/notifications/<int:pk>/read', notifications.notification_read),
    # Configuration
    path('api/config/settings', config.system_settings),
    path('api/config/settings/public', config.public_settings),
    path('api/config/users', config.users),
    path('api/config/users/<int:pk>', config.user_detail),
    path('api/config/permissions', config.role_permissions),
    path('api/config/permissions/<str:role>', config.role_permissions_reset),
    path('api/config/beds', config.bed_list),
    path('api/config/beds/<int:pk>', config.bed_detail),
    path('api/config/beds/<int:pk>/status', config.bed_status),
    path('api/config/beds/<int:pk>/clean', config.bed_clean),
] + _catalog_patterns()
