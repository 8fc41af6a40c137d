from celery import shared_task

from catalog_export import jobs


@shared_task
def full_product_export(params=None):
    return jobs.full_product_export(params).to_dict()


@shared_task
def delta_product_export(params=None):
    return jobs.delta_product_export(params).to_dict()


@shared_task
def full_faq_export(params=None):
    return jobs.full_faq_export(params).to_dict()


@shared_task
def delta_faq_export(params=None):
    return jobs.delta_faq_export(params).to_dict()
