from __future__ import annotations

from typing import List

from .models import CategoryInfo, StateInfo, StaticPageInfo

# 28 states plus the Delhi NCT, with two-letter codes and URL slugs.
INDIAN_STATES: List[StateInfo] = [
    StateInfo(name="Andhra Pradesh", code="AP", slug="andhra-pradesh"),
    StateInfo(name="Arunachal Pradesh", code="AR", slug="arunachal-pradesh"),
    StateInfo(name="Assam", code="AS", slug="assam"),
    StateInfo(name="Bihar", code="BR", slug="bihar"),
    StateInfo(name="Chhattisgarh", code="CG", slug="chhattisgarh"),
    StateInfo(name="Goa", code="GA", slug="goa"),
    StateInfo(name="Gujarat", code="GJ", slug="gujarat"),
    StateInfo(name="Haryana", code="HR", slug="haryana"),
    StateInfo(name="Himachal Pradesh", code="HP", slug="himachal-pradesh"),
    StateInfo(name="Jharkhand", code="JH", slug="jharkhand"),
    StateInfo(name="Karnataka", code="KA", slug="karnataka"),
    StateInfo(name="Kerala", code="KL", slug="kerala"),
    StateInfo(name="Madhya Pradesh", code="MP", slug="madhya-pradesh"),
    StateInfo(name="Maharashtra", code="MH", slug="maharashtra"),
    StateInfo(name="Manipur", code="MN", slug="manipur"),
    StateInfo(name="Meghalaya", code="ML", slug="meghalaya"),
    StateInfo(name="Mizoram", code="MZ", slug="mizoram"),
    StateInfo(name="Nagaland", code="NL", slug="nagaland"),
    StateInfo(name="Odisha", code="OD", slug="odisha"),
    StateInfo(name="Punjab", code="PB", slug="punjab"),
    StateInfo(name="Rajasthan", code="RJ", slug="rajasthan"),
    StateInfo(name="Sikkim", code="SK", slug="sikkim"),
    StateInfo(name="Tamil Nadu", code="TN", slug="tamil-nadu"),
    StateInfo(name="Telangana", code="TG", slug="telangana"),
    StateInfo(name="Tripura", code="TR", slug="tripura"),
    StateInfo(name="Uttar Pradesh", code="UP", slug="uttar-pradesh"),
    StateInfo(name="Uttarakhand", code="UK", slug="uttarakhand"),
    StateInfo(name="West Bengal", code="WB", slug="west-bengal"),
    StateInfo(name="Delhi", code="DL", slug="delhi"),
]

SITEMAP_CATEGORIES: List[CategoryInfo] = [
    CategoryInfo(id="Cars", name="Cars", slug="cars"),
    CategoryInfo(id="Properties", name="Properties", slug="properties"),
    CategoryInfo(id="Mobiles", name="Mobiles", slug="mobiles"),
    CategoryInfo(id="Jobs", name="Jobs", slug="jobs"),
    CategoryInfo(id="Fashion", name="Fashion", slug="fashion"),
    CategoryInfo(id="Bikes", name="Bikes", slug="bikes"),
    CategoryInfo(id="Electronics", name="Electronics & Appliances", slug="electronics"),
    CategoryInfo(id="Commercial", name="Commercial Vehicles", slug="commercial-vehicles"),
    CategoryInfo(id="Furniture", name="Furniture", slug="furniture"),
    CategoryInfo(id="Pets", name="Pets", slug="pets"),
    CategoryInfo(id="Kids", name="Kids", slug="kids"),
    CategoryInfo(id="Sports", name="Sports & Fitness", slug="sports-fitness"),
    CategoryInfo(id="Books", name="Books", slug="books"),
    CategoryInfo(id="Services", name="Services", slug="services"),
    CategoryInfo(id="Gaming", name="Gaming", slug="gaming"),
    CategoryInfo(id="Photography", name="Photography", slug="photography"),
]

STATIC_PAGES: List[StaticPageInfo] = [
    StaticPageInfo(url="/", priority=1.0, changefreq="daily"),
    StaticPageInfo(url="/search", priority=0.8, changefreq="daily"),
    StaticPageInfo(url="/post", priority=0.7, changefreq="weekly"),
    StaticPageInfo(url="/about", priority=0.5, changefreq="monthly"),
    StaticPageInfo(url="/terms", priority=0.3, changefreq="yearly"),
    StaticPageInfo(url="/privacy", priority=0.3, changefreq="yearly"),
]

# -------------------------
# Defaults
# -------------------------
DEFAULT_BASE_URL = "https://qbuyse.com"
DEFAULT_MAX_URLS_PER_SITEMAP = 50000
DEFAULT_CACHE_EXPIRY_MINUTES = 60
DEFAULT_GENERATION_TIMEOUT_SECONDS = 30
DEFAULT_CHANGEFREQ = "weekly"
DEFAULT_PRIORITY = 0.5

CATEGORY_CHANGEFREQ = "daily"
CATEGORY_PRIORITY = 0.8
STATE_CHANGEFREQ = "daily"
STATE_PRIORITY = 0.7
POST_CHANGEFREQ = DEFAULT_CHANGEFREQ
POST_PRIORITY = 0.6

# -------------------------
# XML / protocol
# -------------------------
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
CONTENT_TYPE = "application/xml; charset=utf-8"

STATIC_SITEMAP_FILE = "sitemap-static.xml"
CATEGORIES_SITEMAP_FILE = "sitemap-categories.xml"
STATES_SITEMAP_FILE = "sitemap-states.xml"
POSTS_SITEMAP_FILE_TEMPLATE = "sitemap-posts-{page}.xml"

CATEGORY_PATH_TEMPLATE = "/category/{slug}"
STATE_PATH_TEMPLATE = "/state/{slug}"
POST_PATH_TEMPLATE = "/posts/{id}"
