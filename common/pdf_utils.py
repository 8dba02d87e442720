# common/pdf_utils.py
import logging
import os
from io import BytesIO

from django.conf import settings
from django.template.loader import get_template
from xhtml2pdf import pisa

log = logging.getLogger(__name__)


def media_link_callback(uri, rel):
    """
    xhtml2pdf resolves <img src>/<link href> through this: /uploads/... and
    /static/... become files on disk, anything else is passed through.
    """
    media_url = settings.MEDIA_URL
    static_url = settings.STATIC_URL if settings.STATIC_URL.startswith("/") else f"/{settings.STATIC_URL}"

    if uri.startswith(media_url):
        path = os.path.join(str(settings.MEDIA_ROOT), uri[len(media_url):])
    elif uri.startswith(static_url) and getattr(settings, "STATIC_ROOT", None):
        path = os.path.join(str(settings.STATIC_ROOT), uri[len(static_url):])
    else:
        return uri

    if not os.path.isfile(path):
        log.warning("⚠️ PDF asset %s not found at %s", uri, path)
    return path


def render_html_to_pdf_bytes(template_name: str, context: dict) -> bytes | None:
    """
    Render a Django template to PDF bytes using xhtml2pdf.
    Returns bytes or None on error.
    """
    html = get_template(template_name).render(context)

    result = BytesIO()
    pisa_status = pisa.CreatePDF(
        html,
        dest=result,
        encoding="UTF-8",
        link_callback=media_link_callback,
    )

    if pisa_status.err:
        log.error("❌ xhtml2pdf failed for %s (%s errors)", template_name, pisa_status.err)
        return None

    log.debug("📄 rendered %s (%s bytes)", template_name, result.tell())
    return result.getvalue()
