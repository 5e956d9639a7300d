"""
Stats Service
Admin dashboard figures and the 12-month revenue/order charts

Author: Water Junction
Date: 2025-06-23
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from waterjunction.repositories.stats_repository import StatsRepository


MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
CHART_MONTHS = 12


def chart_months(now: datetime, months: int = CHART_MONTHS) -> List[datetime]:
    """First day of each charted month, oldest first, ending with the current month"""
    current = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return [current - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]


def _fill(rows: List[Dict[str, Any]], months: List[datetime], key: str) -> List[Dict[str, Any]]:
    values = {(row['year'], row['month']): row[key] for row in rows}
    return [
        {
            'month': MONTH_LABELS[month.month - 1],
            key: float(values.get((month.year, month.month), 0)),
        }
        for month in months
    ]


def _money(value) -> float:
    return float(value or 0)


class StatsService:

    def __init__(self, stats_repo: StatsRepository = None):
        self.stats_repo = stats_repo or StatsRepository()

    def get_dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        months = chart_months(now)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        data = self.stats_repo.get_dashboard_data(
            month_start=months[-1],
            day_start=day_start,
            chart_start=months[0],
        )

        revenue_chart = _fill(data['monthly_revenue'], months, 'revenue')
        order_chart = [
            {'month': point['month'], 'orders': int(point['orders'])}
            for point in _fill(data['monthly_orders'], months, 'orders')
        ]

        return {
            'counts': {
                'totalUsers': data['counts']['users'],
                'totalProducts': data['counts']['products'],
                'totalOrders': data['counts']['orders'],
                'totalCategories': data['counts']['categories'],
            },
            'revenue': {
                'total': _money(data['revenue']['total']),
                'monthly': _money(data['revenue']['monthly']),
                'today': _money(data['revenue']['today']),
            },
            'orderStatusCounts': data['order_status_counts'],
            'topProducts': [
                {**row, 'price': _money(row.get('price'))} for row in data['top_products']
            ],
            'recentOrders': [
                {**row, 'total': _money(row.get('total'))} for row in data['recent_orders']
            ],
            'revenueChart': revenue_chart,
            'orderChart': order_chart,
        }
