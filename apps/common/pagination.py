"""Page/limit pagination shared by the list services."""
import math

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator


def clamp_page(page=None, limit=None, default_limit=None, max_limit=None):
    """Return a sane (page, limit) pair from raw caller input."""
    default_limit = default_limit or settings.WALLET_PAGE_SIZE
    max_limit = max_limit or settings.WALLET_MAX_PAGE_SIZE
    try:
        page = max(int(page or 1), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit or default_limit)
    except (TypeError, ValueError):
        limit = default_limit
    return page, min(max(limit, 1), max_limit)


def page_meta(page, limit, total):
    """Pagination block for result sets merged outside a single queryset."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'total_pages': total_pages,
        'has_next_page': page < total_pages,
        'has_prev_page': page > 1,
    }


def paginate_queryset(queryset, page=None, limit=None):
    """
    Paginate a queryset with Django's Paginator.

    Returns {'results': [...], 'pagination': {...}}. A page past the end
    yields no results instead of raising.
    """
    page, limit = clamp_page(page, limit)
    paginator = Paginator(queryset, limit)
    total_pages = paginator.num_pages if paginator.count else 0

    try:
        current = paginator.page(page)
    except EmptyPage:
        return {
            'results': [],
            'pagination': {
                'page': page,
                'limit': limit,
                'total': paginator.count,
                'total_pages': total_pages,
                'has_next_page': False,
                'has_prev_page': total_pages > 0,
            },
        }

    return {
        'results': list(current.object_list),
        'pagination': {
            'page': current.number,
            'limit': limit,
            'total': paginator.count,
            'total_pages': total_pages,
            'has_next_page': current.has_next(),
            'has_prev_page': current.has_previous(),
        },
    }
