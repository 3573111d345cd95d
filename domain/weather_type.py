"""
Domain: Weather categories.

A weather category is the coarse classification produced by the weather check
(rain, clear sky, overcast, snow, ...). It is used both for picking the generic
display message and as the match key for sponsored messages.
"""

from __future__ import annotations

from enum import Enum


class WeatherType(str, Enum):
    THUNDERSTORM = "thunderstorm"
    RAIN = "rain"
    HEAVY_RAIN = "heavy_rain"
    LIGHT_RAIN = "light_rain"
    DRIZZLE = "drizzle"
    HEAVY_SNOW = "heavy_snow"
    LIGHT_SNOW = "light_snow"
    SNOWY = "snowy"
    DENSE_FOG = "dense_fog"
    FOGGY = "foggy"
    CLEAR_SKY = "clear_sky"
    SUNNY = "sunny"
    HOT_SUNNY = "hot_sunny"
    FEW_CLOUDS = "few_clouds"
    PARTLY_CLOUDY = "partly_cloudy"
    BROKEN_CLOUDS = "broken_clouds"
    OVERCAST = "overcast"
    CLOUDY = "cloudy"
    FREEZING = "freezing"
    DUSTY = "dusty"

    @staticmethod
    def parse(value: "str | WeatherType") -> "WeatherType":
        """
        Resolve a WeatherType from its tag, ignoring case and surrounding whitespace.

        Plain condition keywords from weather descriptions ("sandstorm", "mist",
        "snowfall", ...) resolve to the category they are reported under.

        Raises ValueError for unknown tags.
        """

        if isinstance(value, WeatherType):
            return value
        tag = str(value).strip().lower()
        return WeatherType(_KEYWORD_ALIASES.get(tag, tag))


_KEYWORD_ALIASES: dict[str, str] = {
    "dust": WeatherType.DUSTY.value,
    "sandstorm": WeatherType.DUSTY.value,
    "fog": WeatherType.FOGGY.value,
    "mist": WeatherType.FOGGY.value,
    "haze": WeatherType.FOGGY.value,
    "snow": WeatherType.SNOWY.value,
    "snowfall": WeatherType.SNOWY.value,
    "clear": WeatherType.CLEAR_SKY.value,
    "sunshine": WeatherType.SUNNY.value,
}
