import pytest

from interaction_api.data_model import Severity
from interaction_api.text_severity import classify_severity, extract_relevant_excerpt, html_to_text


@pytest.mark.parametrize("text,expected", [
    ("Concomitant use is CONTRAINDICATED.", Severity.HIGH),
    ("El uso concomitante está contraindicado.", Severity.HIGH),
    ("Use with caution and monitor INR.", Severity.MEDIUM),
    ("Se debe vigilar la función renal.", Severity.MEDIUM),
    ("Only mild and infrequent effects were reported.", Severity.LOW),
    ("Se han descrito efectos leves.", Severity.LOW),
    ("No pharmacokinetic data are available.", Severity.UNKNOWN),
    ("", Severity.UNKNOWN),
    (None, Severity.UNKNOWN),
])
def test_classify_severity(text, expected):
    assert classify_severity(text) == expected


def test_high_keywords_win_over_lower_levels():
    text = "Mild symptoms are common, but monitor closely and avoid in renal failure."
    assert classify_severity(text) == Severity.HIGH


def test_medium_wins_over_low():
    assert classify_severity("Minor changes; caution in the elderly.") == Severity.MEDIUM


SECTION = """Interacciones con otros medicamentos.

El omeprazol reduce la activación del clopidogrel.
Su uso concomitante está contraindicado.

Warfarina: vigilar el INR."""


def test_extract_relevant_excerpt_returns_first_matching_paragraph():
    excerpt = extract_relevant_excerpt(SECTION, "Omeprazol")
    assert excerpt == "El omeprazol reduce la activación del clopidogrel.\nSu uso concomitante está contraindicado."


def test_extract_relevant_excerpt_is_case_insensitive_and_keeps_original_case():
    assert extract_relevant_excerpt(SECTION, "warfarina") == "Warfarina: vigilar el INR."


def test_extract_relevant_excerpt_without_match():
    assert extract_relevant_excerpt(SECTION, "ibuprofeno") == ""
    assert extract_relevant_excerpt("", "omeprazol") == ""
    assert extract_relevant_excerpt(SECTION, "") == ""


def test_html_to_text_separates_paragraphs():
    html = "<div><p>Primero <b>omeprazol</b>.</p><p>Segundo<br/>párrafo.</p></div>"
    assert html_to_text(html) == "Primero omeprazol.\n\nSegundo párrafo."


def test_html_to_text_plain_text_passthrough():
    assert html_to_text("uno\n\n\ndos") == "uno\n\ndos"
    assert html_to_text(None) == ""


def test_html_to_text_keeps_container_text_next_to_blocks():
    html = "<div>No se debe combinar con warfarina.<p>Otros datos.</p></div>"
    assert html_to_text(html) == "No se debe combinar con warfarina.\n\nOtros datos."


def test_html_to_text_keeps_bare_text_after_heading():
    html = "<h2>4.5 Interacciones</h2>Contraindicado con omeprazol."
    assert html_to_text(html) == "4.5 Interacciones\n\nContraindicado con omeprazol."


def test_html_to_text_joins_inline_markup_without_spaces():
    assert html_to_text("<p>Evitar con war<span>farina</span>.</p>") == "Evitar con warfarina."


CIMA_SECTION = """
<div class="seccion">
  <h3>4.5 Interacción con otros medicamentos</h3>
  Se han realizado estudios de interacción solo en adultos.
  <table>
    <tr><th>Medicamento</th><th>Efecto</th></tr>
    <tr><td><i>Omeprazol</i></td><td>Uso <b>contraindicado</b></td></tr>
    <tr><td>Warfarina</td><td>Vigilar el INR</td></tr>
  </table>
  <!-- fin de tabla -->
  <div><p>Inductores del CYP3A4:</p>rifampicina reduce la exposición.</div>
</div>
"""


def test_html_to_text_flattens_registry_section():
    assert html_to_text(CIMA_SECTION).split("\n\n") == [
        "4.5 Interacción con otros medicamentos",
        "Se han realizado estudios de interacción solo en adultos.",
        "Medicamento Efecto",
        "Omeprazol Uso contraindicado",
        "Warfarina Vigilar el INR",
        "Inductores del CYP3A4:",
        "rifampicina reduce la exposición.",
    ]


def test_flattened_section_feeds_documentation_stage():
    from interaction_api.data_model import SOURCE_DOCUMENTATION
    from interaction_api.interaction_resolver import InteractionResolver
    from interaction_api.interaction_storage import InMemoryInteractionStore
    from interaction_api.knowledge_base import KnowledgeBase

    resolver = InteractionResolver(KnowledgeBase(InMemoryInteractionStore()))
    text = html_to_text("<div>No se debe combinar con warfarina.<p>Otros datos.</p></div>")

    verdict = resolver.resolve(["warfarina"], ["dabrafenib"], "", text)

    assert verdict.found is True
    assert verdict.source == SOURCE_DOCUMENTATION
    assert verdict.severity == Severity.HIGH
    assert verdict.detail == "No se debe combinar con warfarina."
