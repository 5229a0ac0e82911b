"""Initial schema.

Creates coupons, stores, analytics counters, accounts, game economy, and
sign tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Coupons ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS coupons (
            id UUID PRIMARY KEY,
            lat DOUBLE PRECISION NOT NULL,
            lng DOUBLE PRECISION NOT NULL,
            placement_date VARCHAR(64),
            name VARCHAR(128) NOT NULL,
            ig VARCHAR(256),
            face VARCHAR(256),
            mission TEXT,
            discount VARCHAR(64),
            discount_baht VARCHAR(64),
            total_boxes INTEGER NOT NULL DEFAULT 1,
            remaining_boxes INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_coupons_total_positive CHECK (total_boxes >= 1),
            CONSTRAINT ck_coupons_remaining_range
                CHECK (remaining_boxes >= 0 AND remaining_boxes <= total_boxes)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS stores (
            store_number BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            coupon_count INTEGER NOT NULL DEFAULT 0,
            first_seen_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_coupon_at TIMESTAMPTZ
        )
    """)

    # --- Analytics ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS global_stats (
            identifier VARCHAR(32) PRIMARY KEY,
            app_open_count BIGINT NOT NULL DEFAULT 0,
            treasures_created_count BIGINT NOT NULL DEFAULT 0,
            treasures_opened_count BIGINT NOT NULL DEFAULT 0,
            treasures_completed_count BIGINT NOT NULL DEFAULT 0,
            last_app_open TIMESTAMPTZ,
            last_treasure_created TIMESTAMPTZ,
            last_treasure_opened TIMESTAMPTZ,
            last_treasure_completed TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS visitors (
            ip_address VARCHAR(64) PRIMARY KEY,
            user_agent TEXT,
            device_info JSONB,
            visit_count INTEGER NOT NULL DEFAULT 0,
            first_visit TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_visit TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            total_time_on_page_seconds BIGINT NOT NULL DEFAULT 0,
            app_open_count INTEGER NOT NULL DEFAULT 0,
            treasures_created_count INTEGER NOT NULL DEFAULT 0,
            treasures_opened_count INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_visitors_last_visit
        ON visitors(last_visit DESC)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS referrer_stats (
            domain VARCHAR(255) PRIMARY KEY,
            platform VARCHAR(32) NOT NULL,
            count BIGINT NOT NULL DEFAULT 0
        )
    """)

    # --- Accounts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            role VARCHAR(16) NOT NULL DEFAULT 'normal',
            gender VARCHAR(16),
            age_range VARCHAR(8),
            referral VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            password_reset_token_hash VARCHAR(64),
            password_reset_expires TIMESTAMPTZ,
            CONSTRAINT ck_users_role CHECK (role IN ('normal', 'admin'))
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_username ON users(username)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_users_password_reset_token_hash
        ON users(password_reset_token_hash)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_reports (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_time_on_page_seconds BIGINT NOT NULL DEFAULT 0,
            treasures_placed INTEGER NOT NULL DEFAULT 0,
            treasures_claimed INTEGER NOT NULL DEFAULT 0,
            app_open_count INTEGER NOT NULL DEFAULT 0,
            last_login TIMESTAMPTZ,
            last_app_open TIMESTAMPTZ
        )
    """)

    # --- Game economy ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS game_profiles (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            level INTEGER NOT NULL DEFAULT 1,
            xp BIGINT NOT NULL DEFAULT 0,
            coins BIGINT NOT NULL DEFAULT 0,
            pending_seconds INTEGER NOT NULL DEFAULT 0,
            last_daily_reward_at TIMESTAMPTZ,
            last_sign_placed_at TIMESTAMPTZ,
            avatar JSONB NOT NULL DEFAULT '{}',
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_game_profiles_coins_non_negative CHECK (coins >= 0)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS shop_items (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            slot VARCHAR(16) NOT NULL,
            price INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS inventory_items (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            item_id VARCHAR(64) NOT NULL REFERENCES shop_items(id) ON DELETE CASCADE,
            acquired_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_inventory_items_user_item UNIQUE (user_id, item_id)
        )
    """)

    # --- Signs ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS signs (
            id UUID PRIMARY KEY,
            owner_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            lat DOUBLE PRECISION NOT NULL,
            lng DOUBLE PRECISION NOT NULL,
            type VARCHAR(16) NOT NULL,
            message TEXT,
            title VARCHAR(200),
            description TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            expires_at TIMESTAMPTZ NOT NULL,
            CONSTRAINT ck_signs_type CHECK (type IN ('announcement', 'vote', 'poll'))
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_signs_expires_at ON signs(expires_at)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS sign_options (
            id BIGSERIAL PRIMARY KEY,
            sign_id UUID NOT NULL REFERENCES signs(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            text VARCHAR(120) NOT NULL,
            CONSTRAINT uq_sign_options_sign_position UNIQUE (sign_id, position)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS sign_votes (
            id BIGSERIAL PRIMARY KEY,
            sign_id UUID NOT NULL REFERENCES signs(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            option_position INTEGER NOT NULL,
            voted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_sign_votes_sign_user UNIQUE (sign_id, user_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS sign_comments (
            id BIGSERIAL PRIMARY KEY,
            sign_id UUID NOT NULL REFERENCES signs(id) ON DELETE CASCADE,
            user_id BIGINT REFERENCES users(id) ON DELETE SET NULL,
            username VARCHAR(64) NOT NULL,
            text VARCHAR(500) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_sign_comments_sign
        ON sign_comments(sign_id, created_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sign_comments CASCADE")
    op.execute("DROP TABLE IF EXISTS sign_votes CASCADE")
    op.execute("DROP TABLE IF EXISTS sign_options CASCADE")
    op.execute("DROP TABLE IF EXISTS signs CASCADE")
    op.execute("DROP TABLE IF EXISTS inventory_items CASCADE")
    op.execute("DROP TABLE IF EXISTS shop_items CASCADE")
    op.execute("DROP TABLE IF EXISTS game_profiles CASCADE")
    op.execute("DROP TABLE IF EXISTS user_reports CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP TABLE IF EXISTS referrer_stats CASCADE")
    op.execute("DROP TABLE IF EXISTS visitors CASCADE")
    op.execute("DROP TABLE IF EXISTS global_stats CASCADE")
    op.execute("DROP TABLE IF EXISTS stores CASCADE")
    op.execute("DROP TABLE IF EXISTS coupons CASCADE")
