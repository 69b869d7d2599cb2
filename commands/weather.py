"""天气查询模块：IP 定位 + OpenWeatherMap 当前天气"""

import datetime
from typing import Optional

import requests

from commands.time_announcer import format_clock, format_date
from models.data_models import WeatherReport

LOCATION_API_URL = "https://ipapi.co/json/"
WEATHER_API_URL = "https://api.openweathermap.org/data/2.5/weather"

# OpenWeatherMap units 参数 -> (屏幕符号, 语音单位)
UNIT_LABELS = {
    "metric": ("°C", "degrees"),
    "imperial": ("°F", "degrees Fahrenheit"),
    "standard": ("K", "kelvin"),
}


class WeatherError(Exception):
    """定位或天气查询失败"""


class WeatherService:
    """依次调用定位接口和天气接口，组合成 WeatherReport。"""

    def __init__(self, api_key: Optional[str], units: str = "metric", timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        if units not in UNIT_LABELS:
            raise ValueError(f"unsupported weather units: {units}")
        self.api_key = api_key
        self.units = units
        self.timeout = timeout
        self._http = session or requests

    def fetch_location(self) -> dict:
        """通过 IP 获取当前位置，返回含 city / latitude / longitude 的字典。"""
        try:
            resp = self._http.get(LOCATION_API_URL, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            return {
                "city": data.get("city") or "Unknown",
                "latitude": float(data["latitude"]),
                "longitude": float(data["longitude"]),
            }
        except requests.RequestException as e:
            raise WeatherError("IP location failed") from e
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherError("IP location returned unexpected data") from e

    def fetch_weather(self, latitude: float, longitude: float) -> dict:
        """查询指定坐标的当前天气，返回含 temperature / description 的字典。"""
        if not self.api_key:
            raise WeatherError("Weather API key not configured")
        params = {
            "lat": latitude,
            "lon": longitude,
            "units": self.units,
            "appid": self.api_key,
        }
        try:
            resp = self._http.get(WEATHER_API_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            return {
                "temperature": int(round(float(data["main"]["temp"]))),
                "description": str(data["weather"][0]["description"]),
            }
        except requests.RequestException as e:
            raise WeatherError("Weather fetch failed") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise WeatherError("Weather service returned unexpected data") from e

    def fetch_report(self) -> WeatherReport:
        """先定位再查天气，不做重试。"""
        location = self.fetch_location()
        weather = self.fetch_weather(location["latitude"], location["longitude"])
        return WeatherReport(
            city=location["city"],
            latitude=location["latitude"],
            longitude=location["longitude"],
            temperature=weather["temperature"],
            description=weather["description"],
            units=self.units,
        )


def format_temperature(report: WeatherReport) -> str:
    return f"{report.temperature}{UNIT_LABELS[report.units][0]}"


def compose_weather_info(report: WeatherReport, now: datetime.datetime) -> str:
    """屏幕显示用的多行文字"""
    return (
        f"📍 {report.city}: {format_temperature(report)}, {report.description}\n"
        f"🕑 {format_clock(now)}\n"
        f"📅 {format_date(now)}"
    )


def compose_weather_speech(report: WeatherReport, now: datetime.datetime) -> str:
    unit = UNIT_LABELS[report.units][1]
    return (
        f"In {report.city}, it's {report.temperature} {unit} and {report.description}. "
        f"The time is {format_clock(now)}."
    )
