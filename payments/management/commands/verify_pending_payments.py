# payments/management/commands/verify_pending_payments.py
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from payments.models import Payment
from payments.reconcile import reconcile_from_gateway


class Command(BaseCommand):
    help = "Re-query Chapa for stale pending payments and reconcile them like a webhook would."

    def add_arguments(self, parser):
        parser.add_argument("--age-mins", type=int, default=10,
                            help="Only verify payments older than N minutes (default: 10)")
        parser.add_argument("--max", type=int, default=200,
                            help="Max payments to process (default: 200)")

    def handle(self, *args, **opts):
        cutoff = timezone.now() - timedelta(minutes=opts["age_mins"])

        payments = list(
            Payment.objects.filter(
                status=Payment.STATUS_PENDING,
                payment_method=Payment.METHOD_CHAPA,
                created__lte=cutoff,
            ).order_by("created")[: opts["max"]]
        )

        completed = 0
        failed = 0

        for payment in payments:
            try:
                result = reconcile_from_gateway(payment)
            except Exception as e:
                self.stderr.write(f"{payment.reference}: {e}")
                continue
            if result is None or not result.applied:
                continue
            if result.payment_status == Payment.STATUS_COMPLETED:
                completed += 1
            else:
                failed += 1

        self.stdout.write(self.style.SUCCESS(
            f"Done. Verified {len(payments)} payment(s). Completed {completed}, failed {failed}."
        ))
