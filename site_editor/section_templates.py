"""Prebuilt "insert section" requests offered as quick actions in the editor."""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class SectionTemplate:
    id: str
    label: str
    description: str
    prompt: str


SECTION_TEMPLATES: List[SectionTemplate] = [
    SectionTemplate(
        id="hero-alt",
        label="Hero (Bold)",
        description="Full-width hero with gradient background and large CTA",
        prompt=(
            "Replace the existing hero section with a bold, modern hero. It should have:\n"
            "- A full-width gradient background from indigo-900 to purple-800\n"
            "- A large white heading (text-5xl md:text-7xl font-bold text-white) with a highlighted span "
            "using a yellow or amber accent\n"
            "- A white subtitle (text-xl text-indigo-200 max-w-2xl)\n"
            "- Two CTA buttons side by side: a primary white button and a secondary outline button "
            "(px-8 py-4 rounded-xl font-bold text-lg)\n"
            "- Minimum height min-h-[70vh] with flex items-center\n"
            '- Keep the id="hero" attribute'
        ),
    ),
    SectionTemplate(
        id="faq",
        label="FAQ Section",
        description="Accordion FAQ with 5 relevant questions",
        prompt=(
            "Add a professional FAQ section before the contact section. Requirements:\n"
            '- id="faq", max-w-3xl mx-auto px-6 py-20\n'
            '- Section heading: "Frequently Asked Questions" (text-3xl font-bold text-center mb-12)\n'
            "- 5 accordion items, each with a question (font-semibold text-gray-900 cursor-pointer) and a "
            "collapsible answer (text-gray-600 leading-relaxed)\n"
            "- Use a chevron SVG icon that rotates when open (transition-transform rotate-180)\n"
            "- Add JavaScript to toggle open/close state for each item\n"
            "- Make questions relevant to the business type shown on the page"
        ),
    ),
    SectionTemplate(
        id="stats",
        label="Stats Bar",
        description="Horizontal stats with large numbers",
        prompt=(
            "Add a stats/highlights bar section between the hero and the next section. Requirements:\n"
            '- id="stats", bg-gray-50 border-y border-gray-100 py-12\n'
            "- Horizontal flex row: flex flex-wrap justify-center gap-8 md:gap-16 max-w-5xl mx-auto px-6\n"
            '- 4 stats: "24/7" (Emergency Service), "45 min" (Average Response), "100%" (Satisfaction Rate), '
            '"500+" (Jobs Completed)\n'
            "- Each stat: text-3xl md:text-4xl font-bold, small label below in text-sm text-gray-500\n"
            "- All numbers should use the same color as the main brand color"
        ),
    ),
    SectionTemplate(
        id="why-us",
        label="Why Choose Us",
        description="3-column feature grid with icons",
        prompt=(
            'Add a "Why Choose Us" section after the hero section. Requirements:\n'
            '- id="why-us", py-20 px-6, max-w-6xl mx-auto\n'
            '- Section heading: "Why Choose Us" (text-3xl font-bold text-center mb-4) with a subtitle below\n'
            "- 3 columns (md:grid-cols-3 gap-8): Licensed & Insured, 24/7 Emergency, Satisfaction Guaranteed\n"
            "- Each card: bg-white rounded-2xl shadow-sm border border-gray-100 p-8, icon in a colored circle "
            "at top, bold title, short description\n"
            "- Use relevant SVG icons (shield, clock, star) in indigo-colored circles"
        ),
    ),
    SectionTemplate(
        id="cta-banner",
        label="CTA Banner",
        description="Bold call-to-action banner with button",
        prompt=(
            "Add a CTA banner section before the footer. Requirements:\n"
            '- id="cta-banner", bg-gradient-to-r from-indigo-600 to-indigo-800 py-16 px-6\n'
            "- Centered content: max-w-3xl mx-auto text-center text-white\n"
            '- Large bold heading (text-3xl md:text-4xl font-bold mb-4): "Ready to Get Started?"\n'
            '- Subtitle (text-indigo-200 text-lg mb-8): "Contact us today for a free quote"\n'
            "- Two buttons: white primary and outline secondary\n"
            "- Include phone number placeholder: __PHONE__"
        ),
    ),
]


def get_section_template(template_id: str) -> Optional[SectionTemplate]:
    key = (template_id or "").strip().lower()
    for template in SECTION_TEMPLATES:
        if template.id == key:
            return template
    return None


def list_section_templates() -> List[Dict[str, str]]:
    return [asdict(t) for t in SECTION_TEMPLATES]
