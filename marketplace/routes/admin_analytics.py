import io
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlmodel import Session, func, select

from marketplace.constants.order_status import OrderStatus
from marketplace.database import get_session
from marketplace.dependencies.admin import require_admin
from marketplace.models.order import Order
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.utils.clock import utcnow

router = APIRouter()

# Money actually collected; refunded and cancelled orders are excluded
REVENUE_STATUSES = (OrderStatus.PAID, OrderStatus.COMPLETED)


def _overview(session: Session):
    total_revenue = session.exec(
        select(func.sum(Order.total_amount))
        .where(Order.status.in_(REVENUE_STATUSES))
    ).one() or 0

    paid_orders = session.exec(
        select(func.count(Order.id))
        .where(Order.status.in_(REVENUE_STATUSES))
    ).one() or 0

    by_status = dict(
        session.exec(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        ).all()
    )

    total_users = session.exec(select(func.count(User.id))).one() or 0
    total_projects = session.exec(select(func.count(Project.id))).one() or 0

    avg_order = float(total_revenue) / paid_orders if paid_orders else 0

    return {
        "revenue": float(total_revenue),
        "paidOrders": paid_orders,
        "avgOrderValue": round(avg_order, 2),
        "ordersByStatus": {
            status.value: by_status.get(status, 0) for status in OrderStatus
        },
        "totalUsers": total_users,
        "totalProjects": total_projects,
    }


def _revenue_by_day(session: Session, days: int):
    since = utcnow() - timedelta(days=days)

    data = session.exec(
        select(
            func.date(Order.created_at),
            func.sum(Order.total_amount),
            func.count(Order.id),
        )
        .where(Order.status.in_(REVENUE_STATUSES))
        .where(Order.created_at >= since)
        .group_by(func.date(Order.created_at))
        .order_by(func.date(Order.created_at))
    ).all()

    return [
        {"date": str(d), "revenue": float(total or 0), "orders": count}
        for d, total, count in data
    ]


@router.get("/overview")
def analytics_overview(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return _overview(session)


@router.get("/revenue-chart")
def revenue_chart(
    days: int = Query(30, ge=1, le=365),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return _revenue_by_day(session, days)


@router.get("/top-projects")
def top_projects(
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    data = session.exec(
        select(
            Project.id,
            Project.title,
            func.count(Order.id).label("orders"),
            func.sum(Order.total_amount).label("revenue"),
        )
        .join(Order, Order.project_id == Project.id)
        .where(Order.status.in_(REVENUE_STATUSES))
        .group_by(Project.id, Project.title)
        .order_by(func.count(Order.id).desc())
        .limit(limit)
    ).all()

    return [
        {"projectId": pid, "title": title, "orders": orders, "revenue": float(revenue or 0)}
        for pid, title, orders, revenue in data
    ]


@router.get("/export")
def export_excel(
    days: int = Query(30, ge=1, le=365),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    wb = Workbook()
    thin = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="4F81BD")
    center = Alignment(horizontal="center")

    def style_header(ws):
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin
            cell.alignment = center

    # Sheet 1: Overview
    overview = _overview(session)
    ws = wb.active
    ws.title = "Overview"
    ws.append(["Metric", "Value"])
    style_header(ws)

    ws.append(["Total Revenue", overview["revenue"]])
    ws.append(["Paid Orders", overview["paidOrders"]])
    ws.append(["Average Order Value", overview["avgOrderValue"]])
    for status, count in overview["ordersByStatus"].items():
        ws.append([f"Orders {status}", count])

    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.border = thin

    # Sheet 2: Revenue by day
    ws2 = wb.create_sheet("Revenue")
    ws2.append(["Date", "Revenue", "Orders"])
    style_header(ws2)

    for row in _revenue_by_day(session, days):
        ws2.append([row["date"], row["revenue"], row["orders"]])

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    filename = f"analytics_{utcnow():%Y%m%d}.xlsx"
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
