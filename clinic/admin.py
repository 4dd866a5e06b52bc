"""
Django admin registrations for the clinic models.

Only minimal configuration is applied; the admin site is a development
aid for inspecting rows created through the API.
"""

from django.contrib import admin

from .models import (
    Admission,
    Appointment,
    Bed,
    Bill,
    BillItem,
    LabTest,
    MedicalStaff,
    Medicine,
    NurseService,
    OperationCatalog,
    Patient,
    PayrollRecord,
    RolePermission,
    SystemSetting,
    Transaction,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'full_name', 'role', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'full_name', 'email')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_code', 'full_name', 'type', 'phone', 'created_at')
    list_filter = ('type', 'gender')
    search_fields = ('patient_code', 'full_name', 'phone')


@admin.register(MedicalStaff)
class MedicalStaffAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'full_name', 'type', 'department', 'status')
    list_filter = ('type', 'status')
    search_fields = ('employee_id', 'full_name')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_number', 'patient', 'staff', 'datetime', 'status', 'billing_status')
    list_filter = ('status', 'billing_status')
    search_fields = ('appointment_number', 'patient__full_name')


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('bill_number', 'patient', 'total_amount', 'paid_amount', 'status', 'bill_date')
    list_filter = ('status', 'is_settlement_bill')
    search_fields = ('bill_number', 'patient__full_name')
    inlines = [BillItemInline]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'type', 'category', 'amount', 'method', 'date')
    list_filter = ('type', 'category')


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'type', 'status', 'cost_per_day')
    list_filter = ('type', 'status')


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'bed', 'status', 'entry_date', 'actual_discharge_date')
    list_filter = ('status',)


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('name', 'stock_level', 'reorder_level', 'unit_price', 'expiry_date')
    search_fields = ('name', 'generic_name')


admin.site.register([LabTest, NurseService, OperationCatalog, PayrollRecord, RolePermission, SystemSetting])
