from dataclasses import dataclass

LANDING_PATH = "/"


@dataclass(frozen=True)
class SectionLink:
    href: str
    smooth_scroll: bool


@dataclass(frozen=True)
class FooterLink:
    label: str
    href: str | None = None
    section: str | None = None


@dataclass(frozen=True)
class SocialLink:
    label: str
    url: str
    icon: str


def section_link(current_path: str, section_id: str) -> SectionLink:
    """In-page smooth scroll on the landing route, otherwise navigate to ``/#section``."""
    if current_path == LANDING_PATH:
        return SectionLink(f"#{section_id}", smooth_scroll=True)

    return SectionLink(f"{LANDING_PATH}#{section_id}", smooth_scroll=False)


def local_path(target: str | None, default: str = LANDING_PATH) -> str:
    """Only allow same-site paths as redirect targets."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return default

    return target


FOOTER_LINK_GROUPS: tuple[tuple[str, tuple[FooterLink, ...]], ...] = (
    (
        "Company",
        (
            FooterLink("About Us", section="aboutus"),
            FooterLink("Careers", href="/careers"),
            FooterLink("Blog", href="/blog"),
        ),
    ),
    (
        "Support",
        (
            FooterLink("Contact Us", href="/contact"),
            FooterLink("FAQ", href="/faq"),
            FooterLink("Privacy Policy", href="/privacy"),
            FooterLink("Terms of Service", href="/terms"),
        ),
    ),
)

SOCIAL_LINKS: tuple[SocialLink, ...] = (
    SocialLink("Facebook", "https://www.facebook.com/profile.php?id=61571096468965&mibextid=ZbWKwL", "facebook"),
    SocialLink("Twitter", "https://x.com/Kealthy_life", "x"),
    SocialLink("Instagram", "https://www.instagram.com/kealthy.life/", "instagram"),
    SocialLink("LinkedIn", "https://www.linkedin.com/in/yourprofile", "linkedin"),
    SocialLink("WhatsApp", "https://chat.whatsapp.com/BxNSEDXO6jfKmUl0EuZ6qt?mode=r_t", "message-circle"),
)


def footer_links(current_path: str) -> list[tuple[str, list[tuple[FooterLink, SectionLink | None]]]]:
    """Footer groups with section anchors resolved for the current path."""
    groups = []
    for title, links in FOOTER_LINK_GROUPS:
        resolved = []
        for link in links:
            anchor = section_link(current_path, link.section) if link.section else None
            resolved.append((link, anchor))

        groups.append((title, resolved))

    return groups
