"""
StockWatch – Domain Service: Indicator Calculator
===================================================
Cálculos de indicadores técnicos puros sobre una ventana de velas.

Sin dependencias externas (no TA-Lib, no pandas): fórmulas explícitas,
auditables y deterministas. La misma ventana produce siempre los mismos
valores, bit a bit (se recorre siempre en el mismo orden).

CONVENCIÓN:
- Todas las listas van del más antiguo al más reciente.
- Cada fórmula devuelve None si no hay suficientes datos o si el
  resultado no está definido (división por cero).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from stockwatch.domain.entities.candle import Candle


class IndicatorCalculator:
    """
    Calculadora de indicadores técnicos puros.

    RESPONSABILIDAD:
    Implementar las fórmulas matemáticas y componer el diccionario de
    valores de un snapshot (`compute_all`). NO mantiene estado.
    """

    # ════════════════════════════════════════════════════════════════
    #  MEDIAS
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def sma(
        prices: Sequence[float],
        period: int,
    ) -> Optional[float]:
        """
        SMA = sum(prices[-period:]) / period
        """
        if period <= 0 or len(prices) < period:
            return None

        return sum(prices[-period:]) / period

    @staticmethod
    def ema_series(
        prices: Sequence[float],
        period: int,
    ) -> List[float]:
        """
        Serie EMA alineada con prices[period-1:].

        FÓRMULA:
        EMA_t = price_t × k + EMA_{t-1} × (1-k)
        k = 2 / (period + 1)

        INICIALIZACIÓN:
        EMA inicial = SMA de los primeros `period` valores.
        """
        if period <= 0 or len(prices) < period:
            return []

        k = 2.0 / (period + 1)
        ema = sum(prices[:period]) / period
        series = [ema]
        for price in prices[period:]:
            ema = price * k + ema * (1 - k)
            series.append(ema)
        return series

    @classmethod
    def ema(
        cls,
        prices: Sequence[float],
        period: int,
    ) -> Optional[float]:
        series = cls.ema_series(prices, period)
        return series[-1] if series else None

    # ════════════════════════════════════════════════════════════════
    #  OSCILADORES
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def rsi(
        prices: Sequence[float],
        period: int = 14,
    ) -> Optional[float]:
        """
        RSI con suavizado de Wilder.

        avg_gain_initial = Σ(gain_i, i=1..period) / period
        avg_gain_t = (avg_gain_{t-1} × (period − 1) + gain_t) / period
        RSI = 100 − (100 / (1 + avg_gain / avg_loss))

        Edge cases:
        - avg_loss == 0 → 100.0
        - avg_gain == 0 → 0.0
        - Ambos == 0    → 50.0 (sin movimiento)
        """
        if len(prices) < period + 1:
            return None

        changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
        gains = [max(0.0, c) for c in changes]
        losses = [abs(min(0.0, c)) for c in changes]

        avg_gain = sum(gains[:period]) / period
        avg_loss = sum(losses[:period]) / period
        for gain, loss in zip(gains[period:], losses[period:]):
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period

        if avg_gain == 0.0 and avg_loss == 0.0:
            return 50.0
        if avg_loss == 0.0:
            return 100.0
        if avg_gain == 0.0:
            return 0.0

        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    @classmethod
    def macd(
        cls,
        prices: Sequence[float],
        fast: int = 12,
        slow: int = 26,
        signal: int = 9,
    ) -> Optional[Tuple[float, float, float]]:
        """
        MACD = EMA(fast) − EMA(slow)
        Signal = EMA(signal) de la serie MACD
        Hist = MACD − Signal

        Requiere slow + signal − 1 precios.

        Returns:
            Tuple (macd, signal, hist) o None
        """
        if len(prices) < slow + signal - 1:
            return None

        fast_series = cls.ema_series(prices, fast)
        slow_series = cls.ema_series(prices, slow)
        # Alinear: slow_series[i] corresponde a prices[slow-1+i]
        offset = slow - fast
        macd_series = [
            fast_series[offset + i] - slow_value
            for i, slow_value in enumerate(slow_series)
        ]
        signal_series = cls.ema_series(macd_series, signal)
        if not signal_series:
            return None

        macd_value = macd_series[-1]
        signal_value = signal_series[-1]
        return (macd_value, signal_value, macd_value - signal_value)

    @classmethod
    def stochastic(
        cls,
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        k_period: int = 14,
        d_period: int = 3,
    ) -> Tuple[Optional[float], Optional[float]]:
        """
        %K = (close − LL_k) / (HH_k − LL_k) × 100
        %D = SMA(%K, d_period)

        Rango cero (HH == LL) → %K indefinido (None).

        Returns:
            Tuple (stoch_k, stoch_d); cualquiera puede ser None
        """
        n = len(closes)
        if n < k_period or len(highs) != n or len(lows) != n:
            return (None, None)

        k_values: List[Optional[float]] = []
        for end in range(k_period, n + 1):
            hh = max(highs[end - k_period:end])
            ll = min(lows[end - k_period:end])
            rng = hh - ll
            if rng == 0:
                k_values.append(None)
            else:
                k_values.append((closes[end - 1] - ll) / rng * 100.0)

        stoch_k = k_values[-1]
        stoch_d = None
        recent = k_values[-d_period:]
        if len(recent) == d_period and all(v is not None for v in recent):
            stoch_d = sum(recent) / d_period
        return (stoch_k, stoch_d)

    # ════════════════════════════════════════════════════════════════
    #  VOLATILIDAD
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def atr(
        highs: Sequence[float],
        lows: Sequence[float],
        closes: Sequence[float],
        period: int = 14,
    ) -> Optional[float]:
        """
        ATR con suavizado de Wilder.

        TR = max(high-low, |high-prev_close|, |low-prev_close|)
        ATR_inicial = SMA(TR, period)
        ATR_t = (ATR_{t-1} × (period − 1) + TR_t) / period
        """
        n = len(closes)
        if n < period + 1 or len(highs) != n or len(lows) != n:
            return None

        true_ranges = []
        for i in range(1, n):
            high_low = highs[i] - lows[i]
            high_close = abs(highs[i] - closes[i - 1])
            low_close = abs(lows[i] - closes[i - 1])
            true_ranges.append(max(high_low, high_close, low_close))

        atr = sum(true_ranges[:period]) / period
        for tr in true_ranges[period:]:
            atr = (atr * (period - 1) + tr) / period
        return atr

    @staticmethod
    def bollinger_bands(
        prices: Sequence[float],
        period: int = 20,
        std_dev: float = 2.0,
    ) -> Optional[Tuple[float, float, float]]:
        """
        Middle = SMA(period)
        Upper = Middle + std_dev × σ
        Lower = Middle - std_dev × σ

        σ poblacional (divide entre period).

        Returns:
            Tuple (upper, middle, lower) o None
        """
        if len(prices) < period:
            return None

        recent = prices[-period:]
        middle = sum(recent) / period

        variance = sum((p - middle) ** 2 for p in recent) / period
        sigma = variance ** 0.5

        upper = middle + std_dev * sigma
        lower = middle - std_dev * sigma

        return (upper, middle, lower)

    @staticmethod
    def volatility(
        prices: Sequence[float],
        period: int = 20,
    ) -> Optional[float]:
        """
        Desviación estándar poblacional de los últimos `period` retornos
        close-to-close, en %. Requiere period + 1 precios.
        """
        if len(prices) < period + 1:
            return None

        window = prices[-(period + 1):]
        returns = []
        for prev, curr in zip(window, window[1:]):
            if prev == 0:
                return None
            returns.append((curr / prev - 1) * 100)

        mean = sum(returns) / period
        variance = sum((r - mean) ** 2 for r in returns) / period
        return variance ** 0.5

    @staticmethod
    def momentum(
        prices: Sequence[float],
        period: int = 1,
    ) -> Optional[float]:
        """
        Momentum = (price_current / price_n_periods_ago - 1) × 100
        """
        if len(prices) <= period:
            return None

        old_price = prices[-(period + 1)]
        current = prices[-1]

        if old_price == 0:
            return None

        return (current / old_price - 1) * 100

    # ════════════════════════════════════════════════════════════════
    #  SOPORTE / RESISTENCIA
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def swing_levels(
        highs: Sequence[float],
        lows: Sequence[float],
    ) -> Tuple[Optional[float], Optional[float]]:
        """
        Último swing low (soporte) y último swing high (resistencia).

        PATRÓN DE 3 VELAS:
          swing high → high[i] > high[i-1] AND high[i] > high[i+1]
          swing low  → low[i]  < low[i-1]  AND low[i]  < low[i+1]

        La última vela nunca es pivote (falta su vecino derecho), así
        que los niveles solo usan datos confirmados.

        Returns:
            Tuple (support, resistance)
        """
        support = None
        resistance = None
        for i in range(len(highs) - 2, 0, -1):
            if resistance is None and highs[i] > highs[i - 1] and highs[i] > highs[i + 1]:
                resistance = highs[i]
            if support is None and lows[i] < lows[i - 1] and lows[i] < lows[i + 1]:
                support = lows[i]
            if support is not None and resistance is not None:
                break
        return (support, resistance)

    # ════════════════════════════════════════════════════════════════
    #  SNAPSHOT COMPLETO
    # ════════════════════════════════════════════════════════════════

    @classmethod
    def compute_all(cls, candles: Sequence[Candle]) -> Dict[str, Optional[float]]:
        """
        Valores de todos los campos del catálogo para una ventana.

        Los campos sin datos suficientes quedan en None.
        """
        if not candles:
            return {}

        opens = [c.open for c in candles]
        highs = [c.high for c in candles]
        lows = [c.low for c in candles]
        closes = [c.close for c in candles]
        volumes = [c.volume for c in candles]
        last = candles[-1]

        macd = cls.macd(closes)
        bb = cls.bollinger_bands(closes)
        stoch_k, stoch_d = cls.stochastic(highs, lows, closes)
        support, resistance = cls.swing_levels(highs, lows)

        volume_ma = cls.sma(volumes, 20)
        volume_ratio = None
        if volume_ma:
            volume_ratio = last.volume / volume_ma

        return {
            "open": opens[-1],
            "high": last.high,
            "low": last.low,
            "close": last.close,
            "volume": last.volume,
            "change_pct": cls.momentum(closes, 1),
            "ma5": cls.sma(closes, 5),
            "ma20": cls.sma(closes, 20),
            "ma60": cls.sma(closes, 60),
            "ma120": cls.sma(closes, 120),
            "ema12": cls.ema(closes, 12),
            "ema26": cls.ema(closes, 26),
            "rsi": cls.rsi(closes, 14),
            "macd": macd[0] if macd else None,
            "macd_signal": macd[1] if macd else None,
            "macd_hist": macd[2] if macd else None,
            "stoch_k": stoch_k,
            "stoch_d": stoch_d,
            "bb_upper": bb[0] if bb else None,
            "bb_middle": bb[1] if bb else None,
            "bb_lower": bb[2] if bb else None,
            "atr": cls.atr(highs, lows, closes, 14),
            "volatility": cls.volatility(closes, 20),
            "volume_ma": volume_ma,
            "volume_ratio": volume_ratio,
            "support": support,
            "resistance": resistance,
        }
