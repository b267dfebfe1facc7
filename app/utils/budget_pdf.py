# [ Imports ]
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas
from reportlab.lib.colors import HexColor
from reportlab.platypus import Paragraph
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.enums import TA_LEFT

from app.utils.money import format_brl

logger = logging.getLogger(__name__)

# ==========================================
# CONFIGURAÇÕES DE DESIGN DO ORÇAMENTO
# ==========================================
class BudgetDesign:
    PRIMARY = '#000000'      # Textos
    SECONDARY = '#8B5A2B'    # Marrom madeira (linhas)
    ACCENT = '#1a237e'       # Total
    DARK = '#343a40'
    GRAY = '#6c757d'
    BACKGROUND = '#FAF6EF'   # Fundo das caixas

    FONT_BOLD = "Helvetica-Bold"
    FONT_REGULAR = "Helvetica"
    FONT_ITALIC = "Helvetica-Oblique"

    MARGIN_LEFT = 2.0*cm
    MARGIN_RIGHT = 2.0*cm
    MARGIN_TOP = 2.0*cm
    MARGIN_BOTTOM = 2.2*cm

    SPACE_L = 1.2*cm
    SPACE_M = 0.8*cm
    SPACE_S = 0.5*cm
    SPACE_XS = 0.25*cm


STATUS_LABELS = {
    "RASCUNHO": "Rascunho",
    "ENVIADO": "Enviado",
    "APROVADO": "Aprovado",
    "CANCELADO": "Cancelado",
}

METHOD_LABELS = {
    "PIX": "PIX",
    "CARTAO": "Cartão",
    "DINHEIRO": "Dinheiro",
    "BOLETO": "Boleto",
    "TRANSFERENCIA": "Transferência",
    "OUTRO": "Outro",
}


def format_date(value) -> str:
    """ISO (ou datetime) -> dd/mm/aaaa"""
    if not value:
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


# ==========================================
# FUNÇÕES DE DESENHO
# ==========================================

def draw_line(c, y_pos):
    """Linha dupla (grossa e fina) separando blocos"""
    largura = A4[0]
    c.setStrokeColor(HexColor(BudgetDesign.SECONDARY))

    c.setLineWidth(1.5)
    c.line(BudgetDesign.MARGIN_LEFT, y_pos, largura - BudgetDesign.MARGIN_RIGHT, y_pos)

    c.setLineWidth(0.4)
    c.line(BudgetDesign.MARGIN_LEFT, y_pos - 0.08*cm, largura - BudgetDesign.MARGIN_RIGHT, y_pos - 0.08*cm)

    return y_pos - 0.3*cm


def ensure_space(c, y_pos, needed):
    """Quebra de página quando o bloco não cabe"""
    if y_pos - needed < BudgetDesign.MARGIN_BOTTOM:
        c.showPage()
        return A4[1] - BudgetDesign.MARGIN_TOP
    return y_pos


def draw_header(c, salon, y_position):
    """Nome da marcenaria, telefone e endereço"""
    c.setFillColor(HexColor(BudgetDesign.PRIMARY))
    c.setFont(BudgetDesign.FONT_BOLD, 18)
    c.drawString(BudgetDesign.MARGIN_LEFT, y_position, (salon.get("name") or "Marcenaria").upper())
    y_position -= BudgetDesign.SPACE_S

    c.setFont(BudgetDesign.FONT_REGULAR, 10)
    c.setFillColor(HexColor(BudgetDesign.GRAY))
    contato = " • ".join(p for p in (salon.get("phone"), salon.get("address")) if p)
    if contato:
        c.drawString(BudgetDesign.MARGIN_LEFT, y_position, contato)
        y_position -= BudgetDesign.SPACE_XS

    return draw_line(c, y_position - BudgetDesign.SPACE_XS) - BudgetDesign.SPACE_S


def draw_title(c, budget, y_position):
    c.setFont(BudgetDesign.FONT_BOLD, 16)
    c.setFillColor(HexColor(BudgetDesign.PRIMARY))
    c.drawString(BudgetDesign.MARGIN_LEFT, y_position, "ORÇAMENTO")

    c.setFont(BudgetDesign.FONT_REGULAR, 10)
    c.setFillColor(HexColor(BudgetDesign.DARK))
    codigo = f"Nº {budget.get('id', '')[:8].upper()}"
    c.drawRightString(A4[0] - BudgetDesign.MARGIN_RIGHT, y_position, codigo)

    return y_position - BudgetDesign.SPACE_M


def draw_info_blocks(c, budget, y_position):
    """Cliente à esquerda, dados do orçamento à direita"""
    client = budget.get("client") or {}
    meio = A4[0] / 2

    c.setFont(BudgetDesign.FONT_BOLD, 10)
    c.setFillColor(HexColor(BudgetDesign.PRIMARY))
    c.drawString(BudgetDesign.MARGIN_LEFT, y_position, "CLIENTE")
    c.drawString(meio, y_position, "ORÇAMENTO")
    y_position -= BudgetDesign.SPACE_S

    c.setFont(BudgetDesign.FONT_REGULAR, 10)
    c.setFillColor(HexColor(BudgetDesign.DARK))
    left = [client.get("name") or "-", f"Telefone: {client.get('phone') or '-'}"]
    right = [
        f"Status: {STATUS_LABELS.get(budget.get('status'), budget.get('status') or '-')}",
        f"Data: {format_date(budget.get('createdAt'))}",
        f"Entrega prevista: {format_date(budget.get('expectedDeliveryAt'))}",
    ]

    for idx in range(max(len(left), len(right))):
        if idx < len(left):
            c.drawString(BudgetDesign.MARGIN_LEFT, y_position, left[idx])
        if idx < len(right):
            c.drawString(meio, y_position, right[idx])
        y_position -= BudgetDesign.SPACE_S

    return draw_line(c, y_position) - BudgetDesign.SPACE_S


def draw_items(c, items, y_position):
    """Tabela de itens: descrição, qtd, unitário, total"""
    largura = A4[0]
    col_qty = largura - BudgetDesign.MARGIN_RIGHT - 8.5*cm
    col_unit = largura - BudgetDesign.MARGIN_RIGHT - 4.0*cm
    col_total = largura - BudgetDesign.MARGIN_RIGHT

    def draw_table_header(y):
        c.setFillColor(HexColor(BudgetDesign.BACKGROUND))
        c.rect(BudgetDesign.MARGIN_LEFT, y - 0.15*cm,
               largura - BudgetDesign.MARGIN_LEFT - BudgetDesign.MARGIN_RIGHT, 0.6*cm, stroke=0, fill=1)
        c.setFillColor(HexColor(BudgetDesign.PRIMARY))
        c.setFont(BudgetDesign.FONT_BOLD, 9)
        c.drawString(BudgetDesign.MARGIN_LEFT + 0.2*cm, y, "ITEM")
        c.drawRightString(col_qty, y, "QTD")
        c.drawRightString(col_unit, y, "UNITÁRIO")
        c.drawRightString(col_total - 0.2*cm, y, "TOTAL")
        return y - BudgetDesign.SPACE_M

    styles = getSampleStyleSheet()
    style = styles['Normal']
    style.alignment = TA_LEFT
    style.fontName = BudgetDesign.FONT_REGULAR
    style.fontSize = 9
    style.leading = 11
    style.textColor = HexColor(BudgetDesign.DARK)
    text_width = col_qty - 1.5*cm - BudgetDesign.MARGIN_LEFT

    y_position = draw_table_header(y_position)

    for item in items:
        text = f"<b>{escape(item.get('name') or '')}</b>"
        if item.get("description"):
            text += f"<br/>{escape(item['description'])}"
        p = Paragraph(text, style)
        _, h = p.wrap(text_width, 10*cm)

        if y_position - h < BudgetDesign.MARGIN_BOTTOM:
            c.showPage()
            y_position = draw_table_header(A4[1] - BudgetDesign.MARGIN_TOP)

        top = y_position + 0.3*cm
        p.drawOn(c, BudgetDesign.MARGIN_LEFT + 0.2*cm, top - h)

        c.setFont(BudgetDesign.FONT_REGULAR, 9)
        c.setFillColor(HexColor(BudgetDesign.DARK))
        c.drawRightString(col_qty, y_position, str(item.get("quantity", 1)))
        c.drawRightString(col_unit, y_position, format_brl(item.get("unitPriceCents", 0)))
        c.drawRightString(col_total - 0.2*cm, y_position, format_brl(item.get("totalCents", 0)))

        y_position = min(y_position - BudgetDesign.SPACE_S, top - h - BudgetDesign.SPACE_XS)

    return y_position - BudgetDesign.SPACE_XS


def draw_totals(c, budget, y_position):
    y_position = ensure_space(c, y_position, 2.5*cm)
    x_label = A4[0] - BudgetDesign.MARGIN_RIGHT - 6.0*cm
    x_value = A4[0] - BudgetDesign.MARGIN_RIGHT - 0.2*cm

    c.setFont(BudgetDesign.FONT_REGULAR, 10)
    c.setFillColor(HexColor(BudgetDesign.DARK))
    c.drawString(x_label, y_position, "Subtotal")
    c.drawRightString(x_value, y_position, format_brl(budget.get("subtotalCents", 0)))
    y_position -= BudgetDesign.SPACE_S

    if budget.get("discountCents"):
        c.drawString(x_label, y_position, "Desconto")
        c.drawRightString(x_value, y_position, f"- {format_brl(budget['discountCents'])}")
        y_position -= BudgetDesign.SPACE_S

    c.setFont(BudgetDesign.FONT_BOLD, 13)
    c.setFillColor(HexColor(BudgetDesign.ACCENT))
    c.drawString(x_label, y_position, "TOTAL")
    c.drawRightString(x_value, y_position, format_brl(budget.get("totalCents", 0)))

    return draw_line(c, y_position - BudgetDesign.SPACE_XS) - BudgetDesign.SPACE_S


def draw_payment(c, budget, y_position):
    """Condição de pagamento e parcelas sugeridas"""
    installments = budget.get("installments") or []
    y_position = ensure_space(c, y_position, 1.5*cm + len(installments[:6]) * BudgetDesign.SPACE_S)

    c.setFont(BudgetDesign.FONT_BOLD, 10)
    c.setFillColor(HexColor(BudgetDesign.PRIMARY))
    c.drawString(BudgetDesign.MARGIN_LEFT, y_position, "PAGAMENTO")
    y_position -= BudgetDesign.SPACE_S

    c.setFont(BudgetDesign.FONT_REGULAR, 10)
    c.setFillColor(HexColor(BudgetDesign.DARK))
    metodo = METHOD_LABELS.get(budget.get("paymentMethod"), budget.get("paymentMethod") or "a combinar")
    if budget.get("paymentMode") == "PARCELADO":
        condicao = f"Parcelado em {budget.get('installmentsCount', 1)}x • {metodo}"
    else:
        condicao = f"À vista • {metodo}"
    c.drawString(BudgetDesign.MARGIN_LEFT, y_position, condicao)
    y_position -= BudgetDesign.SPACE_S

    for inst in installments:
        y_position = ensure_space(c, y_position, BudgetDesign.SPACE_S)
        c.drawString(
            BudgetDesign.MARGIN_LEFT + 0.5*cm, y_position,
            f"{inst.get('number')}ª parcela • vencimento {format_date(inst.get('dueDate'))} • "
            f"{format_brl(inst.get('amountCents', 0))}"
        )
        y_position -= BudgetDesign.SPACE_S

    return y_position - BudgetDesign.SPACE_XS


def draw_notes(c, budget, y_position):
    styles = getSampleStyleSheet()
    style = styles['Normal']
    style.fontName = BudgetDesign.FONT_REGULAR
    style.fontSize = 9
    style.textColor = HexColor(BudgetDesign.DARK)
    width = A4[0] - BudgetDesign.MARGIN_LEFT - BudgetDesign.MARGIN_RIGHT

    if budget.get("notes"):
        p = Paragraph(f"<b>Observações:</b> {escape(budget['notes'])}", style)
        _, h = p.wrap(width, 20*cm)
        y_position = ensure_space(c, y_position, h + BudgetDesign.SPACE_S)
        p.drawOn(c, BudgetDesign.MARGIN_LEFT, y_position - h)
        y_position -= h + BudgetDesign.SPACE_S

    y_position = ensure_space(c, y_position, BudgetDesign.SPACE_M)
    c.setFont(BudgetDesign.FONT_ITALIC, 9)
    c.setFillColor(HexColor(BudgetDesign.GRAY))
    c.drawString(
        BudgetDesign.MARGIN_LEFT, y_position,
        "Validade sugerida: 7 dias. Valores sujeitos a confirmação após medição no local."
    )
    return y_position - BudgetDesign.SPACE_M


# ==========================================
# FUNÇÃO PRINCIPAL (GERADOR)
# ==========================================

def generate_budget_pdf(budget: dict, salon: dict) -> bytes:
    """
    Gera o PDF do orçamento a partir de `Budget.to_dict()` e `Salon.to_dict()`.
    """
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"Orçamento {budget.get('id', '')[:8]}")

    try:
        y_pos = A4[1] - BudgetDesign.MARGIN_TOP

        y_pos = draw_header(c, salon or {}, y_pos)
        y_pos = draw_title(c, budget, y_pos)
        y_pos = draw_info_blocks(c, budget, y_pos)
        y_pos = draw_items(c, budget.get("items") or [], y_pos)
        y_pos = draw_totals(c, budget, y_pos)
        y_pos = draw_payment(c, budget, y_pos)
        draw_notes(c, budget, y_pos)

        c.showPage()
        c.save()

        pdf_bytes = buffer.getvalue()
        logger.info(f"PDF do orçamento {budget.get('id')} gerado - Total: {format_brl(budget.get('totalCents', 0))}")
        return pdf_bytes

    except Exception as e:
        logger.error(f"Erro ao gerar PDF do orçamento: {e}")
        raise
    finally:
        buffer.close()
