from __future__ import annotations

from taggedpdf.compiler.roles import ContainerKind
from taggedpdf.compiler.tree import compile_node, compile_tree, new_page_container
from taggedpdf.compiler.types import PageState
from taggedpdf.ir import ContentRecord, ImageResource
from taggedpdf.primitives import NodeKind, StructureNode, content, element


def _state(records: dict[str, str] | None = None, images: list[ImageResource | None] | None = None) -> PageState:
    return PageState(
        page_number=1,
        records={key: ContentRecord(text=value) for key, value in (records or {}).items()},
        images=list(images or []),
    )


def _image(index: int) -> ImageResource:
    return ImageResource(id=f"img_p0_{index}", width=1, height=1, pixels=bytes([0, 0, 0, 255]))


def test_section_with_content_leaf() -> None:
    state = _state({"m1": "Intro"})

    page = compile_tree(element("Sect", content("m1")), state)

    assert len(page.children) == 1
    section = page.children[0]
    assert section.kind == ContainerKind.DIVISION.value
    assert section.tag == "section"
    assert section.text == "Intro"
    assert state.diagnostics == []


def test_pass_through_roles_attach_to_parent() -> None:
    state = _state({"m1": "Body"})

    page = compile_tree(element("Root", element("Document", element("Part", content("m1")))), state)

    assert page.children == []
    assert page.text == "Body"


def test_label_subtree_is_skipped() -> None:
    state = _state({"m1": "1.", "m2": "Item", "m3": "Hidden"})
    tree = element(
        "L",
        element(
            "LI",
            element("Lbl", content("m1"), element("Span", content("m3"))),
            element("LBody", content("m2")),
        ),
    )

    page = compile_tree(tree, state)

    listing = page.children[0]
    item = listing.children[0]
    assert listing.tag == "ul"
    assert item.text == "Item"
    assert item.children == []
    assert "1." not in page.text_content()
    assert "Hidden" not in page.text_content()


def test_sibling_figures_bind_images_in_order() -> None:
    state = _state(images=[_image(1), _image(2)])

    page = compile_tree(element("Div", element("Figure", alt_text="First"), element("Figure")), state)

    first, second = page.children[0].children
    assert first.image.id == "img_p0_1"
    assert first.alt_text == "First"
    assert first.caption == "First"
    assert second.image.id == "img_p0_2"
    assert second.alt_text is None
    assert state.image_cursor == 3


def test_figure_with_failed_decode_has_no_image() -> None:
    state = _state(images=[None, _image(2)])

    page = compile_tree(element("Figure", element("Figure")), state)

    outer = page.children[0]
    inner = outer.children[0]
    assert outer.image is None
    assert inner.image.id == "img_p0_2"


def test_figure_beyond_image_count_is_reported() -> None:
    state = _state(images=[_image(1)])

    page = compile_tree(element("Sect", element("Figure"), element("Figure")), state)

    figures = page.find_all(ContainerKind.FIGURE.value)
    assert [figure.image is not None for figure in figures] == [True, False]
    assert [diagnostic.code for diagnostic in state.diagnostics] == ["missing-figure-image"]


def test_skipped_label_does_not_consume_images() -> None:
    state = _state(images=[_image(1)])

    page = compile_tree(element("LI", element("Lbl", element("Figure")), element("Figure")), state)

    figure = page.find_all(ContainerKind.FIGURE.value)[0]
    assert figure.image.id == "img_p0_1"


def test_unknown_role_is_generic() -> None:
    state = _state({"m1": "x"})

    page = compile_tree(element("CustomThing", content("m1")), state)

    node = page.children[0]
    assert node.kind == ContainerKind.GENERIC.value
    assert node.tag == "customthing"
    assert node.role == "CustomThing"


def test_missing_record_is_a_diagnostic() -> None:
    state = _state({"m1": "present"})

    page = compile_tree(element("Div", content("missing"), content("m1")), state)

    assert page.children[0].text == "present"
    assert len(state.diagnostics) == 1
    assert state.diagnostics[0].code == "missing-content-record"
    assert state.diagnostics[0].page_number == 1


def test_object_references_render_nothing() -> None:
    state = _state()
    link = StructureNode(role="Link", children=[StructureNode(kind=NodeKind.OBJECT, object_id="12R")])

    page = compile_tree(link, state)

    assert page.children[0].tag == "a"
    assert page.children[0].text_content() == ""
    assert state.diagnostics == []


def test_heading_levels_and_notes() -> None:
    state = _state({"h": "Title", "n": "See below"})

    page = compile_tree(element("Document", element("H2", content("h")), element("FENote", content("n"))), state)

    heading, note = page.children
    assert heading.kind == ContainerKind.HEADING.value
    assert heading.level == 2
    assert note.kind == ContainerKind.NOTE.value
    assert note.text == "See below"


def test_empty_tree_yields_empty_page() -> None:
    page = compile_tree(StructureNode(role="Root"), _state())

    assert page.kind == ContainerKind.PAGE.value
    assert page.children == []
    assert page.text == ""


def test_compile_node_appends_under_given_parent() -> None:
    parent = new_page_container()

    compile_node(element("Sect"), parent, _state())
    compile_node(element("Div"), parent, _state())

    assert [child.tag for child in parent.children] == ["section", "div"]


def test_records_are_not_modified() -> None:
    state = _state({"m1": "once"})

    compile_tree(element("Div", content("m1"), content("m1")), state)

    assert state.records["m1"].text == "once"
