from rest_framework import serializers

from orbit.core.utils import parse_month
from .models import Employee, Attendance, PayrollRecord, Interview


class EmployeeSerializer(serializers.ModelSerializer):
    visa_days_remaining = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = Employee
        fields = ['id', 'employee_id', 'user', 'username', 'full_name', 'email', 'phone', 'department',
                  'position', 'joining_date', 'status', 'base_salary', 'visa_status', 'visa_expiry',
                  'visa_days_remaining', 'created_at', 'updated_at']
        read_only_fields = ['employee_id', 'created_at', 'updated_at']


class AttendanceSerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source='employee.full_name', read_only=True)
    department = serializers.CharField(source='employee.department', read_only=True)
    hours_worked = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta:
        model = Attendance
        fields = ['id', 'employee', 'employee_name', 'department', 'date', 'check_in', 'check_out',
                  'hours_worked', 'status', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        validators = []

    def validate(self, attrs):
        employee = attrs.get('employee', getattr(self.instance, 'employee', None))
        day = attrs.get('date', getattr(self.instance, 'date', None))
        check_in = attrs.get('check_in', getattr(self.instance, 'check_in', None))
        check_out = attrs.get('check_out', getattr(self.instance, 'check_out', None))

        if check_in and check_out and check_out <= check_in:
            raise serializers.ValidationError({'check_out': 'Check-out must be after check-in'})

        if employee and day:
            existing = Attendance.objects.filter(employee=employee, date=day)
            if self.instance is not None:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError(
                    {'date': f'Attendance for {employee.full_name} on {day} is already recorded'}
                )
        return attrs


class MonthField(serializers.Field):
    """YYYY-MM in and out, stored as the first day of the month"""

    def to_internal_value(self, data):
        try:
            return parse_month(data)
        except (TypeError, ValueError):
            raise serializers.ValidationError("Month must be in YYYY-MM format")

    def to_representation(self, value):
        return value.strftime('%Y-%m')


class PayrollRecordSerializer(serializers.ModelSerializer):
    month = MonthField()
    employee_name = serializers.CharField(source='employee.full_name', read_only=True)
    employee_code = serializers.CharField(source='employee.employee_id', read_only=True)
    department = serializers.CharField(source='employee.department', read_only=True)

    class Meta:
        model = PayrollRecord
        fields = ['id', 'employee', 'employee_name', 'employee_code', 'department', 'month', 'base_salary',
                  'allowances', 'deductions', 'net_salary', 'status', 'payment_date', 'payment_method',
                  'notes', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['net_salary', 'created_by', 'created_at', 'updated_at']
        extra_kwargs = {'base_salary': {'required': False}}
        validators = []

    def validate(self, attrs):
        employee = attrs.get('employee', getattr(self.instance, 'employee', None))
        month = attrs.get('month', getattr(self.instance, 'month', None))

        if self.instance is None and 'base_salary' not in attrs and employee is not None:
            attrs['base_salary'] = employee.base_salary

        base_salary = attrs.get('base_salary', getattr(self.instance, 'base_salary', 0)) or 0
        allowances = attrs.get('allowances', getattr(self.instance, 'allowances', 0)) or 0
        deductions = attrs.get('deductions', getattr(self.instance, 'deductions', 0)) or 0
        if base_salary + allowances - deductions < 0:
            raise serializers.ValidationError({'deductions': 'Deductions cannot exceed salary plus allowances'})

        if employee and month:
            existing = PayrollRecord.objects.filter(employee=employee, month=month)
            if self.instance is not None:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError(
                    {'month': f'A payroll record for {employee.full_name} in {month:%Y-%m} already exists'}
                )
        return attrs


class InterviewSerializer(serializers.ModelSerializer):

    class Meta:
        model = Interview
        fields = ['id', 'candidate_name', 'email', 'phone', 'position', 'scheduled_at', 'duration_minutes',
                  'interviewers', 'interview_type', 'location', 'status', 'feedback', 'decision', 'score',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_interviewers(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Interviewers must be a list of names")
        return [str(name).strip() for name in value if str(name).strip()]


class InterviewFeedbackSerializer(serializers.Serializer):
    feedback = serializers.CharField()
    decision = serializers.ChoiceField(choices=Interview.DECISION_CHOICES)
    score = serializers.IntegerField(min_value=0, max_value=100, required=False, allow_null=True)
