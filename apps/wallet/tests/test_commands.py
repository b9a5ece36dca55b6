import pytest
from decimal import Decimal
from io import StringIO
from django.core.management import CommandError, call_command
from apps.accounts.models import User


@pytest.mark.django_db
class TestReconcileBalancesCommand:

    def test_all_consistent(self, quarter_history, other_student):
        out = StringIO()
        call_command('reconcile_balances', stdout=out)

        assert 'balance(s) match the ledger' in out.getvalue()

    def test_reports_drift(self, student, other_student):
        User.objects.filter(pk=student.pk).update(balance=Decimal('1.00'))

        out = StringIO()
        call_command('reconcile_balances', '--only-drift', stdout=out)

        output = out.getvalue()
        assert student.email in output
        assert other_student.email not in output
        assert '1 of' in output

    def test_unknown_user(self, db):
        with pytest.raises(CommandError):
            call_command('reconcile_balances', '--user', '00000000-0000-0000-0000-000000000000')
