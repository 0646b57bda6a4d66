"""
Management reports: DRE-style metrics, fleet profitability, line performance,
rule-based insights and the dashboard.
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..models.cash import RouteCash, AgencyCash, CashStatus
from ..models.expense import GeneralExpense
from ..models.fuel import FuelEntry
from ..models.registry import Vehicle, Line, RouteDef
from ..models.tourism import TourismService, TourismStatus
from ..utils.money import money, money_sum, expenses_total, previous_period, iter_days
from .cash import is_day_closed

logger = logging.getLogger(__name__)


class PeriodData:
    """Rows of every financial table that fall in [start, end]."""

    def __init__(self, db: Session, start: date, end: date):
        self.start = start
        self.end = end
        self.routes = db.query(RouteCash).filter(RouteCash.date >= start, RouteCash.date <= end).all()
        self.agencies = db.query(AgencyCash).filter(AgencyCash.date >= start, AgencyCash.date <= end).all()
        self.tourism = db.query(TourismService).filter(
            TourismService.departure_date >= start,
            TourismService.departure_date <= end,
            TourismService.status != TourismStatus.CANCELED,
        ).all()
        self.fuel = db.query(FuelEntry).filter(FuelEntry.date >= start, FuelEntry.date <= end).all()
        self.general = db.query(GeneralExpense).filter(
            GeneralExpense.date >= start, GeneralExpense.date <= end
        ).all()


def _metrics(data: PeriodData) -> dict:
    routes_rev = money_sum(r.revenue_informed for r in data.routes)
    agencies_rev = money_sum(a.value_informed for a in data.agencies)
    tourism_rev = money_sum(t.contract_value for t in data.tourism)
    total_revenue = money(routes_rev + agencies_rev + tourism_rev)

    fuel_cost = money_sum(f.amount for f in data.fuel)
    route_exp = money_sum(r.cash_expenses for r in data.routes)
    agency_exp = money_sum(expenses_total(a.expenses) for a in data.agencies)
    tourism_exp = money_sum(expenses_total(t.expenses) for t in data.tourism)
    variable_costs = money(fuel_cost + route_exp + agency_exp + tourism_exp)

    general_exp = money_sum(e.amount for e in data.general)
    contribution_margin = money(total_revenue - variable_costs)
    return {
        "routes_revenue": routes_rev,
        "agencies_revenue": agencies_rev,
        "tourism_revenue": tourism_rev,
        "total_revenue": total_revenue,
        "fuel_cost": fuel_cost,
        "route_expenses": route_exp,
        "agency_expenses": agency_exp,
        "tourism_expenses": tourism_exp,
        "variable_costs": variable_costs,
        "general_expenses": general_exp,
        "contribution_margin": contribution_margin,
        "net_result": money(contribution_margin - general_exp),
    }


def financial_metrics(db: Session, start: date, end: date) -> dict:
    prev_start, prev_end = previous_period(start, end)
    return {
        "period": {"start": start, "end": end},
        "previous_period": {"start": prev_start, "end": prev_end},
        "current": _metrics(PeriodData(db, start, end)),
        "previous": _metrics(PeriodData(db, prev_start, prev_end)),
    }


def fleet_profitability(db: Session, start: date, end: date, data: Optional[PeriodData] = None) -> list:
    data = data or PeriodData(db, start, end)
    vehicles = db.query(Vehicle).filter(Vehicle.active == True).all()  # noqa: E712

    rows = []
    for vehicle in vehicles:
        v_routes = [r for r in data.routes if r.vehicle_id == vehicle.id]
        v_tourism = [t for t in data.tourism if t.vehicle_id == vehicle.id]
        revenue = money(
            money_sum(r.revenue_informed for r in v_routes) + money_sum(t.contract_value for t in v_tourism)
        )
        fuel = money_sum(f.amount for f in data.fuel if f.vehicle_id == vehicle.id)
        other = money(
            money_sum(r.cash_expenses for r in v_routes)
            + money_sum(expenses_total(t.expenses) for t in v_tourism)
        )
        margin = money(revenue - (fuel + other))
        rows.append({
            "vehicle_id": vehicle.id,
            "plate": vehicle.plate,
            "description": vehicle.description,
            "revenue": revenue,
            "fuel": fuel,
            "other_costs": other,
            "margin": margin,
            "margin_pct": round(margin / revenue * 100, 2) if revenue > 0 else 0.0,
        })
    rows.sort(key=lambda r: r["margin"], reverse=True)
    return rows


def line_performance(db: Session, start: date, end: date, data: Optional[PeriodData] = None) -> list:
    data = data or PeriodData(db, start, end)
    routes = {r.id: r for r in db.query(RouteDef).all()}
    lines = {line.id: line for line in db.query(Line).all()}

    by_line = {}
    for entry in data.routes:
        route = routes.get(entry.route_id)
        line = lines.get(route.line_id) if route else None
        name = line.name if line else "Desconhecida"
        bucket = by_line.setdefault(name, {"name": name, "revenue": 0.0, "passengers": 0})
        bucket["revenue"] = money(bucket["revenue"] + entry.revenue_informed)
        bucket["passengers"] += entry.passengers or 0
    return sorted(by_line.values(), key=lambda b: b["revenue"], reverse=True)


def _pct_change(current: float, previous: float) -> float:
    return round((current - previous) / previous * 100, 1) if previous else 0.0


def insights(metrics: dict, fleet: list) -> list:
    """At most four findings, most important first."""
    current, previous = metrics["current"], metrics["previous"]
    found = []

    if current["net_result"] < 0:
        found.append({
            "type": "danger",
            "title": "Alerta de Prejuízo Operacional",
            "message": f"A operação está com saldo negativo de {current['net_result']:.2f}.",
            "action": "Revise custos fixos e corte gastos não essenciais imediatamente.",
        })
    elif previous["total_revenue"] > 0 and current["total_revenue"] > previous["total_revenue"] * 1.15:
        found.append({
            "type": "success",
            "title": "Crescimento de Receita",
            "message": f"A receita aumentou {_pct_change(current['total_revenue'], previous['total_revenue'])}% "
                       "comparado ao período anterior.",
            "action": "Identifique qual linha puxou esse crescimento e considere aumentar horários.",
        })
    elif previous["total_revenue"] > 0 and current["total_revenue"] < previous["total_revenue"] * 0.9:
        found.append({
            "type": "warning",
            "title": "Queda na Arrecadação",
            "message": f"Houve uma retração de {_pct_change(current['total_revenue'], previous['total_revenue'])}% "
                       "nas vendas.",
            "action": "Verifique se houve perda de viagens ou redução na demanda de passageiros.",
        })

    fuel_ratio = current["fuel_cost"] / current["total_revenue"] if current["total_revenue"] > 0 else 0
    if fuel_ratio > 0.45:
        found.append({
            "type": "danger",
            "title": "Custo de Combustível Crítico",
            "message": f"O diesel está consumindo {fuel_ratio * 100:.1f}% de toda a receita (ideal < 35%).",
            "action": "Agende manutenção da frota ou verifique a condução dos motoristas.",
        })

    loser = next((v for v in fleet if v["margin"] < 0 and v["revenue"] > 0), None)
    if loser:
        found.append({
            "type": "warning",
            "title": "Veículo Deficitário Identificado",
            "message": f"O ônibus {loser['plate']} está gerando prejuízo de {loser['margin']:.2f}.",
            "action": "Avalie consumo de combustível e demanda das linhas deste veículo.",
        })

    if fleet and fleet[0]["margin"] > 0:
        top = fleet[0]
        found.append({
            "type": "info",
            "title": "Destaque da Frota",
            "message": f"O veículo {top['plate']} é o mais rentável, gerando {top['margin']:.2f} de lucro.",
            "action": None,
        })

    return found[:4]


def full_report(db: Session, start: date, end: date) -> dict:
    metrics = financial_metrics(db, start, end)
    data = PeriodData(db, start, end)
    fleet = fleet_profitability(db, start, end, data)
    return {
        "metrics": metrics,
        "fleet": fleet,
        "lines": line_performance(db, start, end, data),
        "insights": insights(metrics, fleet),
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def _dashboard_stats(data: PeriodData) -> dict:
    revenue = money(
        money_sum(r.revenue_informed for r in data.routes)
        + money_sum(a.value_informed for a in data.agencies)
        + money_sum(t.contract_value for t in data.tourism)
    )
    fuel = money_sum(f.amount for f in data.fuel)
    cost = money(
        money_sum(r.cash_expenses for r in data.routes)
        + money_sum(expenses_total(a.expenses) for a in data.agencies)
        + money_sum(expenses_total(t.expenses) for t in data.tourism)
        + fuel
    )
    net = money(revenue - cost)
    return {
        "revenue": revenue,
        "cost": cost,
        "fuel_cost": fuel,
        "net_result": net,
        "margin": round(net / revenue * 100, 2) if revenue > 0 else 0.0,
        "fuel_ratio": round(fuel / revenue * 100, 2) if revenue > 0 else 0.0,
    }


def _vehicle_ranking(db: Session, data: PeriodData) -> dict:
    profit = {}
    for r in data.routes:
        profit[r.vehicle_id] = money(profit.get(r.vehicle_id, 0) + r.revenue_informed - r.cash_expenses)
    for t in data.tourism:
        if t.vehicle_id:
            profit[t.vehicle_id] = money(profit.get(t.vehicle_id, 0) + t.contract_value - expenses_total(t.expenses))
    for f in data.fuel:
        profit[f.vehicle_id] = money(profit.get(f.vehicle_id, 0) - f.amount)

    vehicles = {v.id: v for v in db.query(Vehicle).all()}
    ranked = sorted(
        (
            {
                "vehicle_id": vid,
                "plate": vehicles[vid].plate if vid in vehicles else "???",
                "description": vehicles[vid].description if vid in vehicles else "",
                "profit": value,
            }
            for vid, value in profit.items()
        ),
        key=lambda v: v["profit"],
        reverse=True,
    )
    bottom = sorted((v for v in ranked if v["profit"] < 0), key=lambda v: v["profit"])
    return {"top": ranked[:3], "bottom": bottom[:3]}


def _alerts(stats: dict) -> list:
    alerts = []
    if stats["net_result"] < 0:
        alerts.append({
            "type": "danger",
            "title": "Operação no Vermelho",
            "message": f"Prejuízo de {stats['net_result']:.2f} no período selecionado.",
        })
    if stats["fuel_ratio"] > 35:
        alerts.append({
            "type": "danger",
            "title": "Consumo de Combustível Crítico",
            "message": f"Diesel consome {stats['fuel_ratio']:.1f}% da receita (meta < 35%).",
        })
    if 0 < stats["margin"] < 10:
        alerts.append({
            "type": "warning",
            "title": "Margem Baixa",
            "message": f"Lucratividade de apenas {stats['margin']:.1f}%.",
        })
    return alerts


def dashboard(db: Session, start: date, end: date) -> dict:
    data = PeriodData(db, start, end)
    prev_start, prev_end = previous_period(start, end)
    current = _dashboard_stats(data)

    series = []
    for day in iter_days(start, end):
        day_data = PeriodData(db, day, day)
        stats = _dashboard_stats(day_data)
        series.append({"date": day, "revenue": stats["revenue"], "cost": stats["cost"]})

    return {
        "view": "full",
        "period": {"start": start, "end": end},
        "current": current,
        "previous": _dashboard_stats(PeriodData(db, prev_start, prev_end)),
        "alerts": _alerts(current),
        "ranking": _vehicle_ranking(db, data),
        "series": series,
    }


def operational_dashboard(db: Session, today: Optional[date] = None) -> dict:
    """Reduced view for roles without full dashboard access."""
    today = today or date.today()
    pending_routes = db.query(RouteCash).filter(
        RouteCash.date == today, RouteCash.status == CashStatus.OPEN
    ).count()
    pending_agencies = db.query(AgencyCash).filter(
        AgencyCash.date == today, AgencyCash.status == CashStatus.OPEN
    ).count()
    return {
        "view": "operational",
        "date": today,
        "is_closed": is_day_closed(db, today),
        "pending_route_cash": pending_routes,
        "pending_agency_cash": pending_agencies,
    }
