"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data [--clear]

This creates:
- A superadmin, an accountant, shop owners and a captain
- 6 approved students and 1 waiting for approval
- A canteen with a menu, a laundry and a xerox shop
- Wallet top-ups for every approved student
- Orders in every lifecycle state
- One ad-hoc payment request billed to third-year students
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone

from apps.accounts.models import User, UserRole
from apps.common.container import get_container
from apps.orders.models import Order
from apps.payments.models import PaymentRequest
from apps.payments.services import TargetSelector
from apps.shops.models import Category, MenuItem, Shop, ShopCategory
from apps.wallet.models import EntrySource, LedgerEntry

STAFF_PASSWORD = 'password123'

STUDENTS = [
    ('Arjun Mehta', '21CSE001', 'CSE', 3, Decimal('800')),
    ('Divya Nair', '21CSE014', 'CSE', 3, Decimal('650')),
    ('Karthik Raj', '22ECE007', 'ECE', 2, Decimal('400')),
    ('Meera Iyer', '22IT021', 'IT', 2, Decimal('1200')),
    ('Rahul Verma', '23MECH003', 'MECH', 1, Decimal('300')),
    ('Sneha Pillai', '21AIDS010', 'AIDS', 3, Decimal('150')),
]

MENU = {
    'Breakfast': [
        ('Masala Dosa', Decimal('40')),
        ('Idli Vada', Decimal('30')),
        ('Poha', Decimal('25')),
    ],
    'Meals': [
        ('Veg Thali', Decimal('80')),
        ('Curd Rice', Decimal('45')),
        ('Veg Biryani', Decimal('90')),
    ],
    'Beverages': [
        ('Filter Coffee', Decimal('15')),
        ('Masala Chai', Decimal('12')),
        ('Fresh Lime Soda', Decimal('30')),
    ],
}


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')
        container = get_container()

        shops = self.create_shops()
        menu = self.create_menu(shops['canteen'])
        users = self.create_users(shops)

        self.top_up_wallets(container, users)
        self.create_orders(container, users, shops, menu)
        self.create_payment_request(container, users)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts (password: %s):' % STAFF_PASSWORD)
        self.stdout.write('  admin@campus.edu (superadmin)')
        self.stdout.write('  accounts@campus.edu (accountant)')
        self.stdout.write('  canteen.owner@campus.edu / canteen.captain@campus.edu')
        self.stdout.write('  laundry.owner@campus.edu / xerox.owner@campus.edu')
        self.stdout.write('  arjun.mehta@campus.edu ... (students)')

    def clear_data(self):
        """Clear all canteen data from the database."""
        PaymentRequest.objects.all().delete()
        LedgerEntry.objects.all().delete()
        Order.objects.all().delete()
        MenuItem.objects.all().delete()
        Category.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@campus.edu').delete()
        Shop.objects.all().delete()

    def create_shops(self):
        self.stdout.write('  Creating shops...')

        shops = {}
        for key, name, category in [
            ('canteen', 'Main Canteen', ShopCategory.CANTEEN),
            ('laundry', 'Campus Laundry', ShopCategory.LAUNDRY),
            ('xerox', 'Print Hub', ShopCategory.XEROX),
        ]:
            shops[key], _ = Shop.objects.get_or_create(name=name, defaults={'category': category})
        return shops

    def create_menu(self, canteen):
        """Create the canteen menu. The chai is on offer for a week."""
        self.stdout.write('  Creating menu...')

        now = timezone.now()
        menu = {}
        for sort_order, (category_name, items) in enumerate(MENU.items()):
            category, _ = Category.objects.get_or_create(
                shop=canteen,
                name=category_name,
                defaults={'sort_order': sort_order},
            )
            for name, price in items:
                menu[name], _ = MenuItem.objects.get_or_create(
                    shop=canteen,
                    name=name,
                    defaults={'category': category, 'price': price},
                )

        chai = menu['Masala Chai']
        chai.is_offer = True
        chai.offer_price = Decimal('10')
        chai.offer_start = now - timedelta(days=1)
        chai.offer_end = now + timedelta(days=6)
        chai.save()
        return menu

    def _user(self, email, name, **fields):
        user, created = User.objects.get_or_create(email=email, defaults={'name': name, **fields})
        if created:
            user.set_password(STAFF_PASSWORD)
            user.save()
        return user

    def create_users(self, shops):
        self.stdout.write('  Creating users...')

        users = {
            'admin': self._user(
                'admin@campus.edu', 'Campus Admin',
                role=UserRole.SUPERADMIN, is_staff=True, is_superuser=True, is_approved=True,
            ),
            'accountant': self._user(
                'accounts@campus.edu', 'Accounts Office', role=UserRole.ACCOUNTANT, is_approved=True,
            ),
            'owner': self._user(
                'canteen.owner@campus.edu', 'Ravi Shankar',
                role=UserRole.OWNER, shop=shops['canteen'], is_approved=True,
            ),
            'captain': self._user(
                'canteen.captain@campus.edu', 'Lakshmi Devi',
                role=UserRole.CAPTAIN, shop=shops['canteen'], is_approved=True,
            ),
            'laundry_owner': self._user(
                'laundry.owner@campus.edu', 'Suresh Babu',
                role=UserRole.OWNER, shop=shops['laundry'], is_approved=True,
            ),
            'xerox_owner': self._user(
                'xerox.owner@campus.edu', 'Anand Kumar',
                role=UserRole.OWNER, shop=shops['xerox'], is_approved=True,
            ),
        }

        students = []
        for name, roll_number, department, year, _ in STUDENTS:
            students.append(self._user(
                name.lower().replace(' ', '.') + '@campus.edu',
                name,
                role=UserRole.STUDENT,
                roll_number=roll_number,
                department=department,
                year=year,
                is_approved=True,
            ))
        users['students'] = students

        self._user(
            'new.student@campus.edu', 'Priya Sharma',
            role=UserRole.STUDENT, roll_number='24CSE099', department='CSE', year=1, is_approved=False,
        )
        return users

    def top_up_wallets(self, container, users):
        self.stdout.write('  Topping up wallets...')

        for student, (_, _, _, _, amount) in zip(users['students'], STUDENTS):
            if student.balance == 0:
                container.ledger.credit(
                    user_id=student.pk,
                    amount=amount,
                    source=EntrySource.CASH_DEPOSIT,
                    actor=users['accountant'],
                )

    def create_orders(self, container, users, shops, menu):
        """One order per lifecycle state, plus a laundry and a xerox order."""
        self.stdout.write('  Creating orders...')

        orders = container.orders
        owner = users['owner']
        arjun, divya, karthik, meera, rahul, _ = users['students']

        def food(student, *lines):
            return orders.create_order(
                actor=student,
                shop_id=shops['canteen'].pk,
                items=[{'menu_item_id': menu[name].pk, 'quantity': quantity} for name, quantity in lines],
            )

        food(arjun, ('Masala Dosa', 1), ('Filter Coffee', 2))

        preparing = food(divya, ('Veg Thali', 1))
        orders.update_status(preparing.pk, 'preparing', owner)

        ready = food(karthik, ('Idli Vada', 2), ('Masala Chai', 1))
        orders.update_status(ready.pk, 'preparing', owner)
        orders.update_status(ready.pk, 'ready', owner)

        completed = food(meera, ('Veg Biryani', 1), ('Fresh Lime Soda', 1))
        orders.update_status(completed.pk, 'preparing', owner)
        orders.update_status(completed.pk, 'ready', owner)
        orders.complete(completed.pk, owner)

        cancelled = food(rahul, ('Poha', 1))
        orders.cancel_by_owner(cancelled.pk, rahul, reason='Ordered by mistake')

        orders.create_laundry_order(
            actor=meera,
            shop_id=shops['laundry'].pk,
            items=[{'category': 'regular', 'count': 6}, {'category': 'denim', 'count': 2}],
        )
        orders.create_xerox_order(
            actor=arjun,
            shop_id=shops['xerox'].pk,
            page_count=24,
            copies=2,
            color_type='bw',
            paper_size='A4',
            double_sided=True,
        )

    def create_payment_request(self, container, users):
        self.stdout.write('  Creating payment request...')

        if PaymentRequest.objects.filter(title='Industrial visit').exists():
            return
        request = container.payments.create_request(
            users['admin'],
            'Industrial visit',
            'Bus fare for the third-year plant visit',
            Decimal('350'),
            TargetSelector(target_type='year', year=3),
            due_date=timezone.now() + timedelta(days=14),
        )
        container.payments.pay(users['students'][0], request.pk)
