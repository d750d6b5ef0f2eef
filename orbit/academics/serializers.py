from decimal import Decimal

from django.db.models import Q
from rest_framework import serializers

from .models import (
    Course, Trainer, Student, RegistrationCourse, Invoice, Schedule,
    Certificate, Assessment, StudentAttendance, TrainerFeedback, CLASS_TYPE_CHOICES,
    PAYMENT_MODE_CHOICES,
)


class CourseSerializer(serializers.ModelSerializer):
    student_count = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = ['id', 'name', 'description', 'duration', 'fee', 'online_rate', 'offline_rate',
                  'private_rate', 'batch_rate', 'content', 'active', 'student_count',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_student_count(self, obj):
        return Student.objects.filter(
            Q(course=obj) | Q(registration_courses__course=obj)
        ).distinct().count()

    def validate_content(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Content must be a list of modules")
        return value

    def validate_fee(self, value):
        if value < 0:
            raise serializers.ValidationError("Fee cannot be negative")
        return value


class TrainerSerializer(serializers.ModelSerializer):
    course_names = serializers.SerializerMethodField()

    class Meta:
        model = Trainer
        fields = ['id', 'full_name', 'email', 'phone', 'specialization', 'courses', 'course_names',
                  'availability', 'active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_course_names(self, obj):
        return [course.name for course in obj.courses.all()]

    def validate_availability(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Availability must be an object keyed by weekday")
        return value


class StudentListSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True, default=None)

    class Meta:
        model = Student
        fields = ['id', 'student_id', 'registration_number', 'full_name', 'email', 'phone',
                  'course', 'course_name', 'class_type', 'batch', 'registration_date',
                  'total_fee', 'balance_due', 'payment_status', 'created_at']


class StudentSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True, default=None)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)
    amount_paid = serializers.SerializerMethodField()

    class Meta:
        model = Student
        fields = ['id', 'student_id', 'registration_number', 'full_name', 'first_name', 'last_name',
                  'father_name', 'email', 'phone', 'alternative_phone', 'dob', 'gender', 'address',
                  'nationality', 'passport_no', 'emirates_id_no', 'emirates', 'education',
                  'company_or_university', 'class_type', 'course', 'course_name', 'batch',
                  'registration_date', 'due_date', 'course_fee', 'discount', 'total_fee',
                  'initial_payment', 'balance_due', 'amount_paid', 'payment_mode', 'payment_status',
                  'terms_accepted', 'signature_date', 'created_by', 'created_by_name',
                  'created_at', 'updated_at']
        read_only_fields = ['student_id', 'registration_number', 'total_fee', 'balance_due',
                            'payment_status', 'created_by', 'signature_date', 'created_at', 'updated_at']
        extra_kwargs = {'full_name': {'required': False}}

    def get_amount_paid(self, obj):
        return str(obj.amount_paid())

    def validate(self, attrs):
        if self.instance is None and 'course_fee' not in attrs and attrs.get('course'):
            attrs['course_fee'] = attrs['course'].price_for(attrs.get('class_type', 'offline'))
        course_fee = attrs.get('course_fee', getattr(self.instance, 'course_fee', Decimal('0.00')))
        discount = attrs.get('discount', getattr(self.instance, 'discount', Decimal('0.00')))
        if course_fee is not None and course_fee < 0:
            raise serializers.ValidationError({'course_fee': 'Course fee cannot be negative'})
        if discount is not None and discount < 0:
            raise serializers.ValidationError({'discount': 'Discount cannot be negative'})
        if course_fee is not None and discount is not None and discount > course_fee:
            raise serializers.ValidationError({'discount': 'Discount cannot exceed the course fee'})
        initial_payment = attrs.get('initial_payment')
        if initial_payment is not None and initial_payment < 0:
            raise serializers.ValidationError({'initial_payment': 'Initial payment cannot be negative'})
        if initial_payment and self.instance is None and initial_payment > course_fee - discount:
            raise serializers.ValidationError({'initial_payment': 'Initial payment cannot exceed the total fee'})
        if not attrs.get('full_name') and self.instance is None:
            name = f"{attrs.get('first_name', '')} {attrs.get('last_name', '')}".strip()
            if not name:
                raise serializers.ValidationError({'full_name': 'This field is required.'})
            attrs['full_name'] = name
        return attrs


class RegistrationCourseSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = RegistrationCourse
        fields = ['id', 'student', 'course', 'course_name', 'price', 'discount', 'discount_amount',
                  'final_price', 'created_at']
        read_only_fields = ['student', 'created_at']


class RegistrationCourseLineSerializer(serializers.Serializer):
    course = serializers.PrimaryKeyRelatedField(queryset=Course.objects.all())
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True,
                                     min_value=Decimal('0.00'))
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0.00'),
                                        min_value=Decimal('0.00'), max_value=Decimal('100.00'))


class RegistrationStudentSerializer(serializers.ModelSerializer):
    """Student details accepted by the registration endpoints (fees are computed)"""
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    class Meta:
        model = Student
        fields = ['full_name', 'first_name', 'last_name', 'father_name', 'email', 'phone',
                  'alternative_phone', 'dob', 'gender', 'address', 'nationality', 'passport_no',
                  'emirates_id_no', 'emirates', 'education', 'company_or_university', 'class_type',
                  'batch', 'registration_date', 'due_date']

    def validate(self, attrs):
        name = attrs.get('full_name') or f"{attrs.get('first_name', '')} {attrs.get('last_name', '')}".strip()
        if not name:
            raise serializers.ValidationError({'full_name': 'A student name is required.'})
        attrs['full_name'] = name
        return attrs


class RegistrationSerializer(serializers.Serializer):
    student = RegistrationStudentSerializer()
    courses = RegistrationCourseLineSerializer(many=True)
    initial_payment = serializers.DecimalField(max_digits=12, decimal_places=2, required=False,
                                               default=Decimal('0.00'), min_value=Decimal('0.00'))
    payment_mode = serializers.ChoiceField(choices=PAYMENT_MODE_CHOICES, required=False, default='cash')
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')

    def validate_courses(self, value):
        if not value:
            raise serializers.ValidationError("At least one course is required")
        course_ids = [line['course'].id for line in value]
        if len(course_ids) != len(set(course_ids)):
            raise serializers.ValidationError("A course can only be listed once")
        return value


class RegistrationLinkSerializer(serializers.Serializer):
    expiry_days = serializers.IntegerField(required=False, min_value=1, max_value=90)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False,
                                                   default=Decimal('0.00'),
                                                   min_value=Decimal('0.00'), max_value=Decimal('100.00'))
    course = serializers.PrimaryKeyRelatedField(queryset=Course.objects.filter(active=True), required=False,
                                                allow_null=True)


class SelfRegistrationSerializer(RegistrationStudentSerializer):
    """Public self-registration submitted through a registration link"""
    payment_method = serializers.ChoiceField(choices=PAYMENT_MODE_CHOICES, default='cash')
    signature_data = serializers.CharField(required=False, allow_blank=True)
    terms_accepted = serializers.BooleanField()

    class Meta(RegistrationStudentSerializer.Meta):
        fields = RegistrationStudentSerializer.Meta.fields + ['payment_method', 'signature_data', 'terms_accepted']

    def validate_terms_accepted(self, value):
        if not value:
            raise serializers.ValidationError("Terms and conditions must be accepted")
        return value

    def validate_class_type(self, value):
        if value not in dict(CLASS_TYPE_CHOICES):
            raise serializers.ValidationError("Invalid class type")
        return value


class InvoiceSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.full_name', read_only=True)
    student_code = serializers.CharField(source='student.student_id', read_only=True)
    course_name = serializers.CharField(source='student.course.name', read_only=True, default=None)

    class Meta:
        model = Invoice
        fields = ['id', 'invoice_number', 'student', 'student_name', 'student_code', 'course_name',
                  'amount', 'payment_mode', 'transaction_id', 'payment_date', 'status', 'notes',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['invoice_number', 'created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        student = attrs.get('student', getattr(self.instance, 'student', None))
        amount = attrs.get('amount', getattr(self.instance, 'amount', None))
        status = attrs.get('status', getattr(self.instance, 'status', 'pending'))
        if student and amount and status == 'paid':
            already_paid = student.amount_paid()
            if self.instance is not None and self.instance.status == 'paid':
                already_paid -= self.instance.amount
            if already_paid + amount > student.total_fee:
                raise serializers.ValidationError({'amount': 'Payment exceeds the outstanding balance'})
        return attrs


class ScheduleSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True)
    trainer_name = serializers.CharField(source='trainer.full_name', read_only=True)
    duration_hours = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = Schedule
        fields = ['id', 'title', 'course', 'course_name', 'trainer', 'trainer_name', 'students',
                  'session_type', 'start_time', 'end_time', 'duration_hours', 'occurrence_days',
                  'location', 'status', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        start_time = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end_time = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        trainer = attrs.get('trainer', getattr(self.instance, 'trainer', None))
        status = attrs.get('status', getattr(self.instance, 'status', 'confirmed'))

        if start_time and end_time and end_time <= start_time:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})

        if trainer and start_time and end_time and status != 'cancelled':
            clashes = Schedule.objects.filter(
                trainer=trainer,
                start_time__lt=end_time,
                end_time__gt=start_time,
            ).exclude(status='cancelled')
            if self.instance is not None:
                clashes = clashes.exclude(pk=self.instance.pk)
            if clashes.exists():
                raise serializers.ValidationError(
                    {'trainer': f'{trainer.full_name} already has a session in this time slot'}
                )
        return attrs


class CertificateSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.full_name', read_only=True)
    student_code = serializers.CharField(source='student.student_id', read_only=True)
    course_name = serializers.CharField(source='course.name', read_only=True)
    issued_by_name = serializers.CharField(source='issued_by.display_name', read_only=True, default=None)

    class Meta:
        model = Certificate
        fields = ['id', 'certificate_number', 'student', 'student_name', 'student_code', 'course',
                  'course_name', 'issue_date', 'issued_by', 'issued_by_name', 'created_at']
        read_only_fields = ['certificate_number', 'issued_by', 'created_at']

    def validate(self, attrs):
        student = attrs.get('student', getattr(self.instance, 'student', None))
        course = attrs.get('course', getattr(self.instance, 'course', None))
        if student and course:
            existing = Certificate.objects.filter(student=student, course=course)
            if self.instance is not None:
                existing = existing.exclude(pk=self.instance.pk)
            if existing.exists():
                raise serializers.ValidationError(
                    {'course': 'A certificate for this course was already issued to this student'}
                )
        return attrs


class AssessmentSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True)

    class Meta:
        model = Assessment
        fields = ['id', 'student', 'course', 'course_name', 'title', 'date', 'score', 'grade',
                  'feedback', 'created_at']
        read_only_fields = ['student', 'created_at']


class StudentAttendanceSerializer(serializers.ModelSerializer):
    schedule_title = serializers.CharField(source='schedule.title', read_only=True, default=None)

    class Meta:
        model = StudentAttendance
        fields = ['id', 'student', 'schedule', 'schedule_title', 'date', 'status', 'duration_hours',
                  'notes', 'created_at']
        read_only_fields = ['student', 'created_at']


class TrainerFeedbackSerializer(serializers.ModelSerializer):
    course_name = serializers.CharField(source='course.name', read_only=True)
    student_name = serializers.CharField(source='student.full_name', read_only=True, default=None)

    class Meta:
        model = TrainerFeedback
        fields = ['id', 'trainer', 'course', 'course_name', 'student', 'student_name', 'rating',
                  'comment', 'date', 'created_at']
        read_only_fields = ['trainer', 'created_at']
