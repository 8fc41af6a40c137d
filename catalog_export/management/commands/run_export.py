from django.core.management.base import BaseCommand, CommandError

from catalog_export import jobs

JOBS = {
    'full-products': (jobs.full_product_export, None),
    'delta-products': (jobs.delta_product_export, 'dataPriorToHours'),
    'full-faqs': (jobs.full_faq_export, None),
    'delta-faqs': (jobs.delta_faq_export, 'faqDataPriorToHours'),
}


class Command(BaseCommand):
    help = "Run one catalog export job synchronously."

    def add_arguments(self, parser):
        parser.add_argument('job', choices=sorted(JOBS))
        parser.add_argument('--hours', type=float, help="Only export records modified in the last N hours.")
        parser.add_argument('--price-book', dest='price_book', help="Price book for list prices.")

    def handle(self, *args, **options):
        job, hours_param = JOBS[options['job']]

        params = {}
        if options.get('hours') is not None:
            if hours_param is None:
                raise CommandError("--hours only applies to delta jobs")
            params[hours_param] = options['hours']
        if options.get('price_book'):
            params['listPriceBookId'] = options['price_book']

        status = job(params)
        if not status.ok:
            raise CommandError(status.message)
        self.stdout.write(self.style.SUCCESS(status.message))
