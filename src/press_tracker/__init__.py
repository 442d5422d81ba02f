"""ゴルフのプレス(賭け)スコアカード計算パッケージ"""

__version__ = "0.1.0"
