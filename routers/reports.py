from fastapi import APIRouter, Depends
from fastapi.responses import Response
import urllib.parse

from dependencies import get_store, get_current_user
from schemas import SalesSummary
from services.fundraiser import FundraiserStore

router = APIRouter(prefix="/api/reports", dependencies=[Depends(get_current_user)])

# ==========================================
#         RELATÓRIOS (campanha selecionada)
# ==========================================


@router.get("/summary", response_model=SalesSummary)
def sales_summary(store: FundraiserStore = Depends(get_store)):
    brain = store.brain()
    return SalesSummary(
        total_sales=brain.total_sales(),
        total_orders=brain.total_orders(),
        total_products_sold=brain.total_products_sold(),
        orders_by_status=brain.orders_by_status(),
        sales_by_payment_method=brain.sales_by_payment_method(),
        top_pathfinder=brain.top_pathfinder(),
        selected_campaign=store.selected_campaign,
        active_campaign=store.active_campaign,
    )


@router.get("/pathfinders")
def ranking_pathfinders(store: FundraiserStore = Depends(get_store)):
    return store.sales_by_pathfinder


@router.get("/products")
def ranking_products(store: FundraiserStore = Depends(get_store)):
    return store.sales_by_product


@router.get("/payment-methods")
def sales_by_payment_method(store: FundraiserStore = Depends(get_store)):
    return store.sales_by_payment_method


@router.get("/recent-orders")
def recent_orders(store: FundraiserStore = Depends(get_store)):
    return store.recent_orders


@router.get("/export.csv")
def export_csv(store: FundraiserStore = Depends(get_store)):
    export = store.export_to_csv()
    return Response(
        content=export.content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{urllib.parse.quote(export.filename)}"},
    )
