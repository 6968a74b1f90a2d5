import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///btcguess.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Player backend: 'supabase' (hosted REST table) or 'sql' (local table)
    PLAYER_BACKEND = os.environ.get('PLAYER_BACKEND', 'supabase')
    SUPABASE_URL = os.environ.get('SUPABASE_URL')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY')
    # Must answer with {"bitcoin": {"usd": <number>}}
    BTC_PRICE_API = os.environ.get('BTC_PRICE_API')
    # Timers (seconds)
    PRICE_POLL_INTERVAL_SEC = int(os.environ.get('PRICE_POLL_INTERVAL_SEC', '30'))
    GUESS_DURATION_SEC = int(os.environ.get('GUESS_DURATION_SEC', '60'))
    TICK_INTERVAL_SEC = int(os.environ.get('TICK_INTERVAL_SEC', '1'))
    HTTP_TIMEOUT_SEC = float(os.environ.get('HTTP_TIMEOUT_SEC', '10'))
    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'ALLOWED_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
