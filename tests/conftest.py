import pytest

from kindle_api.auth import DeviceInfo, KindleSession

COOKIES = {
    "ubid-main": "131-0000000-0000000",
    "at-main": "Atza|test_at_main",
    "x-main": "test_x_main",
    "session-id": "138-1234567-7654321",
    "session-token": "test_session_token",
}


@pytest.fixture
def session():
    return KindleSession(
        cookies=COOKIES,
        device=DeviceInfo(device_session_token="adp_token", device_name="Kindle Cloud Reader"),
        session_id="138-1234567-7654321",
    )


def book_card(
    asin="B084357H23",
    title="The Invisible Life of Addie LaRue",
    author="By: V. E. Schwab",
    date="Sunday December 15, 2024",
    cover="https://m.media-amazon.com/images/I/418brAemxDL._SY160.jpg",
):
    """One notebook library card; pass None to leave a part out."""
    parts = [f'<div id="{asin}" class="a-row kp-notebook-library-each-book">', '<span class="a-declarative">']
    if cover is not None:
        parts.append(f'<a href="#"><img src="{cover}" class="kp-notebook-cover-image kp-notebook-cover-image-border"></a>')
    if title is not None:
        parts.append(f'<h2 class="a-size-base a-color-base kp-notebook-searchable a-text-bold">{title}</h2>')
    if author is not None:
        parts.append(f'<p class="a-spacing-base a-color-secondary kp-notebook-searchable">{author}</p>')
    if date is not None:
        parts.append(f'<input type="hidden" name="" value="{date}" id="kp-notebook-annotated-date-{asin}">')
    parts.append("</span></div>")
    return "\n".join(parts)


def library_page(cards, next_token=None):
    token_input = ""
    if next_token is not None:
        token_input = f'<input type="hidden" name="" value="{next_token}" class="kp-notebook-library-next-page-start">'
    return (
        "<html><body><div id=\"kp-notebook-library\" class=\"a-row\">"
        + "\n".join(cards)
        + "</div>"
        + token_input
        + "</body></html>"
    )


def annotation_row(
    annotation_id="QTE3OTk3RjY2",
    highlight="The past is a wild animal.",
    note="",
    color="blue",
    header="Blue highlight | Page:&nbsp;42",
    location="1234",
):
    """One notebook annotation row; pass None to leave a part out."""
    parts = [f'<div id="{annotation_id}" class="a-row a-spacing-base">' if annotation_id else '<div class="a-row a-spacing-base">']
    parts.append('<div class="a-column a-span10 kp-notebook-row-separator">')
    if header is not None:
        parts.append(
            '<div class="a-row"><span id="annotationHighlightHeader" '
            f'class="a-size-small a-color-secondary kp-notebook-metadata">{header}</span></div>'
        )
    color_class = f" kp-notebook-highlight-{color}" if color else ""
    parts.append(f'<div id="highlight-{annotation_id}" class="a-row kp-notebook-highlight kp-notebook-selectable{color_class}">')
    if highlight is not None:
        parts.append(f'<span id="highlight" class="a-size-base-plus a-color-base">{highlight}</span>')
    parts.append("</div>")
    if note is not None:
        parts.append(
            '<div class="a-row kp-notebook-note kp-notebook-selectable">'
            '<span id="note-label" class="a-size-small a-color-secondary">Note:</span>'
            f'<span id="note" class="a-size-base-plus a-color-base">{note}</span></div>'
        )
    parts.append("</div>")
    if location is not None:
        parts.append(f'<input type="hidden" name="" value="{location}" id="kp-annotation-location">')
    parts.append("</div>")
    return "\n".join(parts)


def annotations_page(rows):
    sentinel = (
        '<div id="kp-notebook-annotations-sentinel" class="a-row">'
        '<span id="highlight">not an annotation</span>'
        '<input type="hidden" value="" class="kp-notebook-annotations-next-page-start"></div>'
    )
    return (
        "<html><body><div id=\"kp-notebook-annotations\" class=\"a-row\">"
        + "\n".join(rows)
        + sentinel
        + "</div></body></html>"
    )
