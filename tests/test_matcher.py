"""Style usage matcher tests across authoring forms."""

from __future__ import annotations

import pytest

from email_style_lint.errors import ParseInputError
from email_style_lint.matcher import (
    DeclaredForm,
    MatcherOptions,
    StyleUsageMatcher,
    iter_declarations,
)
from email_style_lint.source import SourcePosition
from tests.helpers_rules import parse_tsx


def _sites(text: str, options: MatcherOptions | None = None) -> list[tuple[str, str, str]]:
    source = parse_tsx(text)
    return [
        (site.declared_property_name, site.declared_form.value, site.raw_value)
        for site in StyleUsageMatcher(source, options)
    ]


def test_inline_object_on_style_attribute() -> None:
    source = parse_tsx(
        """
        export const Email = () => (
          <div style={{ gap: "10px", color: "red" }}>Hi</div>
        );
        """
    )
    sites = list(StyleUsageMatcher(source))
    assert [site.declared_property_name for site in sites] == ["gap", "color"]
    assert sites[0].declared_form is DeclaredForm.INLINE_OBJECT
    assert sites[0].raw_value == "10px"
    assert sites[0].location == SourcePosition(line=2, column=17)


def test_inline_object_key_variants() -> None:
    sites = _sites(
        """
        const gap = 4;
        export const Row = () => (
          <div style={{ gap, "background-clip": "text", [dynamic]: 1, ...base }} />
        );
        """
    )
    assert sites == [
        ("gap", "inline_object", "gap"),
        ("background-clip", "inline_object", "text"),
    ]


def test_attribute_literal_declarations() -> None:
    source = parse_tsx(
        """
        export const Cell = () => <td style="display: flex; gap: 4px">x</td>;
        """
    )
    sites = list(StyleUsageMatcher(source))
    assert [(site.declared_property_name, site.raw_value) for site in sites] == [
        ("display", "flex"),
        ("gap", "4px"),
    ]
    assert all(site.declared_form is DeclaredForm.ATTRIBUTE_LITERAL for site in sites)
    column = "export const Cell = () => <td style=\"display: flex; gap: 4px\">".index("gap") + 1
    assert sites[1].location == SourcePosition(line=1, column=column)


def test_string_inside_style_expression_is_attribute_literal() -> None:
    assert _sites(
        """
        export const Cell = () => <td style={"gap: 2px"} />;
        """
    ) == [("gap", "attribute_literal", "2px")]


def test_tagged_template_declarations_with_substitutions() -> None:
    source = parse_tsx(
        """
        const card = css`
          display: flex;
          gap: ${space}px;
          ${mixin}
        `;
        """
    )
    sites = list(StyleUsageMatcher(source))
    assert [(site.declared_property_name, site.raw_value) for site in sites] == [
        ("display", "flex"),
        ("gap", "${space}px"),
    ]
    assert sites[1].declared_form is DeclaredForm.TEMPLATED_STRING
    assert sites[1].location == SourcePosition(line=3, column=3)


def test_styled_component_tags_are_recognized() -> None:
    sites = _sites(
        """
        const Row = styled.div`gap: 2px;`;
        const Wrapped = styled(Button)`column-gap: 1px;`;
        const Attrs = styled.div.attrs({ role: "row" })`row-gap: 3px;`;
        """
    )
    assert [name for name, _form, _value in sites] == ["gap", "column-gap", "row-gap"]


def test_untagged_templates_and_plain_objects_are_ignored() -> None:
    assert (
        _sites(
            """
            const text = `gap: 1px;`;
            const styles = { gap: "1px" };
            const html = sql`gap: 1px`;
            export const A = () => <div data-style="gap: 1px" title="gap: 1px" />;
            """
        )
        == []
    )


def test_style_element_stylesheet() -> None:
    source = parse_tsx(
        """
        export const Head = () => (
          <style>{`
            .row { gap: 8px; }
            @media (max-width: 600px) { .row { background-clip: text; } }
          `}</style>
        );
        """
    )
    sites = list(StyleUsageMatcher(source))
    assert [(site.declared_property_name, site.location.line) for site in sites] == [
        ("gap", 3),
        ("background-clip", 4),
    ]
    assert all(site.declared_form is DeclaredForm.TEMPLATED_STRING for site in sites)


def test_conditional_and_nested_structures_are_all_visited() -> None:
    sites = _sites(
        """
        export const Email = ({ show, wide }) => (
          <section>
            {show && (
              <div style={wide ? { gap: 1 } : { columnGap: 2 }}>
                {items.map((item) => (
                  <span key={item} style={{ ...base, rowGap: 3 }} />
                ))}
              </div>
            )}
            <p style={{ gap: 4 } as React.CSSProperties} />
            <p style={merge({ gap: 5 }, other)} />
          </section>
        );
        """
    )
    assert sites == [
        ("gap", "inline_object", "1"),
        ("columnGap", "inline_object", "2"),
        ("rowGap", "inline_object", "3"),
        ("gap", "inline_object", "4"),
        ("gap", "inline_object", "5"),
    ]


def test_mixed_forms_come_back_in_source_order() -> None:
    source = parse_tsx(
        """
        const card = css`gap: 1px;`;
        export const Email = () => (
          <div>
            <p style="gap: 2px" /><p style={{ gap: 3 }} />
            <p style={`gap: 4px`} />
          </div>
        );
        """
    )
    sites = list(StyleUsageMatcher(source))
    assert [(site.location.line, site.declared_form.value, site.raw_value) for site in sites] == [
        (1, "templated_string", "1px"),
        (4, "attribute_literal", "2px"),
        (4, "inline_object", "3"),
        (5, "templated_string", "4px"),
    ]
    assert sites[1].location.column < sites[2].location.column


def test_matcher_is_restartable() -> None:
    source = parse_tsx(
        """
        export const A = () => <div style={{ gap: 1, color: "red" }} />;
        """
    )
    matcher = StyleUsageMatcher(source)
    assert list(matcher) == list(matcher)


def test_custom_style_attributes_and_tags() -> None:
    text = """
    const Box = () => <Section containerStyle={{ gap: 1 }} />;
    const block = tw`gap: 2px;`;
    """
    assert _sites(text) == []
    options = MatcherOptions(style_attributes=("style", "containerStyle"), style_tags=("tw",))
    assert [name for name, _form, _value in _sites(text, options)] == ["gap", "gap"]


def test_matcher_rejects_missing_tree() -> None:
    with pytest.raises(ParseInputError):
        StyleUsageMatcher(None)  # type: ignore[arg-type]


def test_iter_declarations_skips_selectors_comments_and_nested_groups() -> None:
    text = (
        "/* gap: 0; */ a:hover { gap: 1px; } "
        "background: url(data:image/png;base64,AAAA); "
        'content: "a;b"; @import url("x.css");'
    )
    names = [declaration.name for declaration in iter_declarations(text)]
    assert names == ["gap", "background", "content"]


def test_iter_declarations_offsets_point_at_names() -> None:
    text = "  gap : 4px;color:red"
    declarations = list(iter_declarations(text))
    assert [text[item.name_offset : item.name_offset + len(item.name)] for item in declarations] == [
        "gap",
        "color",
    ]
    assert [text[item.value_start : item.value_end].strip() for item in declarations] == [
        "4px",
        "red",
    ]


def test_final_declaration_value_excludes_closing_delimiter() -> None:
    sites = _sites(
        """
        const row = css`padding: 0; gap: ${space}px`;
        export const Cell = () => <td style="gap: 4px" />;
        """
    )
    assert sites == [
        ("padding", "templated_string", "0"),
        ("gap", "templated_string", "${space}px"),
        ("gap", "attribute_literal", "4px"),
    ]


def test_iter_declarations_ignores_comment_openers_inside_strings() -> None:
    text = "content: \"/*\"; gap: 1px; quotes: '*/' ; /* row-gap: 2px; */ column-gap: 3px"
    names = [declaration.name for declaration in iter_declarations(text)]
    assert names == ["content", "gap", "quotes", "column-gap"]
