import re

# Category -> subcategories known to the web client
TAXONOMY: dict[str, list[str]] = {
    "Products": [
        "Fashion & Apparel",
        "Beauty & Skincare",
        "Food & Beverage",
        "Art & Decor",
        "Books & Media",
        "African Traditional Products",
        "Tech & Gadgets",
        "Jewelry & Handmade Items",
    ],
    "Services": [
        "Home Services",
        "Transportation & Logistics",
        "Legal Services",
        "Financial Services",
        "Marketing & Branding",
        "Health & Fitness",
        "Events & Entertainment",
        "Travel & Tourism",
        "Repair & Maintenance",
    ],
    "Education & Learning": [
        "Online Courses & Training",
        "Tutors & Coaching",
        "Schools & Institutions",
        "Workshops & Seminars",
        "Language Learning",
        "Youth Development Programs",
        "Study Abroad Programs",
        "Cultural & Heritage Education",
    ],
    "Health & Wellness": [
        "Holistic & Traditional Healing",
        "Clinics & Health Professionals",
        "Herbal Products & Remedies",
        "Mental Health Services",
        "Maternity & Birth",
        "Fitness Centers",
        "Spiritual Guidance / Faith-Based Services",
        "Nutritionists & Wellness Coaches",
    ],
    "Professional & Creative": [
        "Graphic & Web Design",
        "Content Creators / Influencers",
        "Writers & Editors",
        "IT & Developers",
        "Consultants",
        "Photographers & Videographers",
        "Architects & Engineers",
        "Virtual Assistants / Admin",
    ],
    "Community & Culture": [
        "Nonprofits & NGOs",
        "Cultural Centers",
        "Diaspora Groups",
        "Youth Programs",
        "Women's Networks",
        "Pan-African Forums",
        "Podcasts & Media Channels",
        "Churches / Faith Communities",
    ],
}


def slugify(name: str) -> str:
    """'Fashion & Apparel' -> 'fashion-apparel'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def is_known_pair(category: str, subcategory: str) -> bool:
    return subcategory in TAXONOMY.get(category, [])


def categories_payload() -> list[dict]:
    return [
        {
            "name": category,
            "slug": slugify(category),
            "subcategories": [{"name": sub, "slug": slugify(sub)} for sub in subcategories],
        }
        for category, subcategories in TAXONOMY.items()
    ]
