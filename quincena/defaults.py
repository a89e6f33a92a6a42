"""Default values for a home-care period record."""

from __future__ import annotations


DEFAULT_TURNO = "24X24"

PERIOD_DEFAULTS: dict = {
    "id": None,
    "contract_id": None,
    "item": None,
    "n_pago": None,
    "fecha_pago_quincena": None,
    "turno": DEFAULT_TURNO,
    "f_desde": None,
    "f_hasta": None,
    "monto": 0.0,
    "f_feriados": "",
    "m_feriados": 0.0,
    "p_del_serv": "0",
    "f_pausas": "",
    "monto_total": 0.0,
    "fecha_pago": "",
    "metodo_pago": "",
    "numero_operacion": "",
    "factura_boleta": "",
    "created_at": None,
    "updated_at": None,
}
