"""
Accès aux données pour la feature 'payments'.
- Lecture des commandes serveur (orders).
- Suivi des callbacks Xendit: payments, payment_events, statut des commandes.
Les écritures propagent leurs erreurs (le webhook répond 500 et Xendit relance).
"""
from typing import Any, Dict, Optional
import logging

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.payments.repository
def fetch_order(order_id: str) -> Optional[dict]:
    """
    Commande minimale (id, total_amount, customer_name) depuis la table 'orders'.
    - Retourne None si introuvable ou en cas d'erreur.
    """
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, total_amount, customer_name")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.fetch_order failed order_id=%s", order_id)
        return None

def find_payment_by_session(session_id: str) -> Optional[dict]:
    """Paiement existant pour une facture Xendit (payments.session_id)."""
    res = (
        supabase_client.get_service_supabase()
        .table("payments")
        .select("id, order_id")
        .eq("session_id", session_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def insert_payment(row: Dict[str, Any]) -> Optional[dict]:
    res = supabase_client.get_service_supabase().table("payments").insert(row).execute()
    rows = res.data or []
    return rows[0] if rows else None

def update_payment(payment_id: str, fields: Dict[str, Any]) -> None:
    supabase_client.get_service_supabase().table("payments").update(fields).eq("id", payment_id).execute()

def insert_payment_event(*, payment_id: str, event_type: str, external_id: Optional[str], payload: Dict[str, Any]) -> None:
    """
    Journal des callbacks. Un doublon (même external_id, callback rejoué) est ignoré avec un warning.
    """
    try:
        (
            supabase_client.get_service_supabase()
            .table("payment_events")
            .insert({
                "payment_id": payment_id,
                "event_type": event_type,
                "external_id": external_id,
                "payload": payload,
            })
            .execute()
        )
    except Exception as e:
        logger.warning("payments.repository.insert_payment_event skipped payment_id=%s: %s", payment_id, e)

def update_order_status(order_id: str, status: str) -> None:
    supabase_client.get_service_supabase().table("orders").update({"status": status}).eq("id", order_id).execute()
