"""
Summary views over the county irrigation table, shaped for charts and maps
"""

import numpy as np
import pandas as pd

from table_normalizer import ROW_COLUMNS, percent


class IrrigationAnalyzer:
    def __init__(self, irrigation_df: pd.DataFrame):
        missing = [c for c in ROW_COLUMNS if c not in irrigation_df.columns]
        if missing:
            raise ValueError(f"Irrigation table is missing columns: {missing}")
        self.irrigation_df = irrigation_df

    def _resolve_years(self, df: pd.DataFrame, years):
        if isinstance(years, str) and years.startswith("last_"):
            n = int(years.split("_")[1])
            max_year = int(df["year"].max())
            return list(range(max_year - n + 1, max_year + 1))
        return years

    def get_county_data(self, state_code=None, years=None):
        """Get filtered county rows"""
        df = self.irrigation_df.copy()

        if state_code:
            df = df[df["state_code"] == str(state_code)]

        if years and not df.empty:
            years = self._resolve_years(df, years)
            if isinstance(years, list) and len(years) > 0:
                df = df[df["year"].isin(years)]

        return df

    def state_summary(self, years=None) -> pd.DataFrame:
        """Irrigated and total acres summed per state and year"""
        df = self.get_county_data(years=years)
        columns = ["state_code", "state_name", "year", "irrigated_acres",
                   "total_acres", "percent_irrigated", "counties"]
        if df.empty:
            return pd.DataFrame(columns=columns)

        summary = (
            df.groupby(["state_code", "year"], as_index=False)
            .agg(
                state_name=("state_name", "first"),
                irrigated_acres=("irrigated_acres", "sum"),
                total_acres=("total_acres", "sum"),
                counties=("county_code", "nunique"),
            )
            .sort_values(["state_code", "year"])
            .reset_index(drop=True)
        )
        summary["percent_irrigated"] = [
            percent(irr, tot) for irr, tot in zip(summary["irrigated_acres"], summary["total_acres"])
        ]
        return summary[columns]

    def irrigation_trend(self, state_code=None):
        """Yearly totals and the direction of the irrigated share over time"""
        df = self.get_county_data(state_code=state_code)

        if df.empty:
            return None

        yearly = (
            df.groupby("year")[["irrigated_acres", "total_acres"]]
            .sum()
            .sort_index()
            .reset_index()
        )
        yearly["percent_irrigated"] = [
            percent(irr, tot) for irr, tot in zip(yearly["irrigated_acres"], yearly["total_acres"])
        ]

        if len(yearly) >= 2:
            slope = np.polyfit(yearly["year"].astype(float), yearly["percent_irrigated"], 1)[0]
            if abs(slope) < 1e-9:
                direction = "flat"
            else:
                direction = "increasing" if slope > 0 else "decreasing"
        else:
            slope = 0.0
            direction = "flat"

        return {
            "state_code": state_code or "All States",
            "trend": yearly.to_dict("records"),
            "slope_per_year": round(float(slope), 3),
            "direction": direction,
            "years": f"{int(yearly['year'].min())}-{int(yearly['year'].max())}",
            "records_analyzed": len(df),
        }

    def top_counties(self, year=None, top_n: int = 10):
        """Counties with the highest irrigated share in one year (latest by default)"""
        df = self.irrigation_df
        if df.empty:
            return None

        if year is None:
            year = int(df["year"].max())
        data = df[df["year"] == year]
        if data.empty:
            return None

        ranked = (data.sort_values(["percent_irrigated", "region_id"], ascending=[False, True])
                  .head(top_n)
                  .reset_index(drop=True))

        return {
            "year": year,
            "counties": ranked[["region_id", "county_name", "state_name",
                                "percent_irrigated"]].to_dict("records"),
            "records_analyzed": len(data),
        }

    def map_layer(self, year: int):
        """region_id -> percent_irrigated records for joining onto county shapes"""
        data = self.irrigation_df[self.irrigation_df["year"] == year]
        return (data[["region_id", "county_name", "percent_irrigated"]]
                .drop_duplicates(subset="region_id")
                .sort_values("region_id")
                .to_dict("records"))
