from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class UserRole(models.TextChoices):
    STUDENT = 'student', 'Student'
    CAPTAIN = 'captain', 'Captain'
    OWNER = 'owner', 'Shop Owner'
    ACCOUNTANT = 'accountant', 'Accountant'
    SUPERADMIN = 'superadmin', 'Super Admin'


class Department(models.TextChoices):
    CSE = 'CSE', 'CSE'
    ECE = 'ECE', 'ECE'
    EEE = 'EEE', 'EEE'
    MECH = 'MECH', 'MECH'
    CIVIL = 'CIVIL', 'CIVIL'
    IT = 'IT', 'IT'
    AIDS = 'AIDS', 'AIDS'
    AIML = 'AIML', 'AIML'
    OTHER = 'OTHER', 'Other'


SHOP_STAFF_ROLES = (UserRole.OWNER, UserRole.CAPTAIN)


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.SUPERADMIN)
        extra_fields.setdefault('is_approved', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)

    def eligible_students(self):
        """Students that can be billed: active and approved."""
        return self.filter(role=UserRole.STUDENT, is_active=True, is_approved=True)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Campus user with email authentication.

    Students hold a wallet whose balance is cached on this row. The balance
    is only ever written by WalletLedger.post_entry, in the same transaction
    that appends the ledger entry justifying the change.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    name = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.STUDENT)

    # Student profile
    roll_number = models.CharField(max_length=30, blank=True, null=True, unique=True)
    department = models.CharField(max_length=10, choices=Department.choices, blank=True)
    year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(4)],
    )

    # Wallet
    balance = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    # Shop staff (owner / captain)
    shop = models.ForeignKey(
        'shops.Shop',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='staff',
    )

    # Permissions
    is_active = models.BooleanField(default=True)
    is_approved = models.BooleanField(default=False)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['role', 'is_active', 'is_approved'], name='users_role_active_idx'),
            models.Index(fields=['department', 'year'], name='users_dept_year_idx'),
            models.Index(fields=['created_at'], name='users_created_idx'),
        ]

    def __str__(self):
        return self.email

    def get_display_name(self):
        """Return name or email prefix."""
        return self.name or self.email.split('@')[0]

    @property
    def is_student(self):
        return self.role == UserRole.STUDENT

    @property
    def is_shop_staff(self):
        return self.role in SHOP_STAFF_ROLES
