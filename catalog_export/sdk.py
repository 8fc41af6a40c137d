from django.conf import settings


def get_sdk_head_data():
    return {'sdk_url': getattr(settings, 'INGESTION_SDK_URL', '')}


def get_sdk_config_data():
    base_api_url = getattr(settings, 'INGESTION_SDK_API_URL', '')
    sdk_api_key = getattr(settings, 'INGESTION_SDK_API_KEY', '')
    return {
        'base_api_url': base_api_url,
        'sdk_api_key': sdk_api_key,
        'load_sdk': bool(base_api_url and sdk_api_key),
    }


def sdk_context(request):
    """Template context processor; empty unless the storefront SDK is enabled."""
    if not getattr(settings, 'INGESTION_SDK_ENABLED', False):
        return {}
    return {
        'ingestion_sdk_head': get_sdk_head_data(),
        'ingestion_sdk_config': get_sdk_config_data(),
    }
