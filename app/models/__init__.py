# app/models/__init__.py
# Import all models here so SQLAlchemy registers them into Base.metadata.

from app.models.user import User  # noqa: F401
from app.models.site_settings import SiteSettings  # noqa: F401

from app.models.webinar import Webinar  # noqa: F401
from app.models.service import Service  # noqa: F401

from app.models.coupon import Coupon, CouponUsage  # noqa: F401

from app.models.registration import WebinarRegistration  # noqa: F401
from app.models.purchase import ServicePurchase  # noqa: F401

from app.models.contact_lead import ContactLead  # noqa: F401

from app.models.faq import Faq  # noqa: F401
from app.models.legal_page import LegalPage  # noqa: F401
