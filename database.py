"""
Database utilities for the SEO Dashboard
"""
import sqlite3
import json
import logging
from typing import Optional, List, Dict, Any

from exceptions import NotFoundError, ValidationError
from models import (
    BACKLINK_STATUSES, Website, Keyword, Backlink, ContentAnalysis,
    TechnicalAudit, LocalSeoData, CompetitorAnalysis
)
from utils import now_iso

logger = logging.getLogger(__name__)


def sqlite_path_from_url(database_url: str) -> str:
    """Accept 'sqlite:///relative.db', 'sqlite:////abs/path.db' or a bare file path"""
    if database_url.startswith("sqlite:///"):
        return database_url[len("sqlite:///"):]
    if database_url.startswith("sqlite://"):
        return database_url[len("sqlite://"):]
    if "://" in database_url:
        raise ValueError(f"Unsupported database URL: {database_url}")
    return database_url


def _loads(value: Optional[str], default):
    if value is None:
        return default
    return json.loads(value)


class DatabaseManager:
    """Manages SQLite database operations for SEO dashboard data"""

    def __init__(self, database_url: str):
        self.db_path = sqlite_path_from_url(database_url)
        self.setup_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def setup_database(self):
        """Initialize SQLite database with complete schema"""
        conn = self._connect()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS websites (
                id INTEGER PRIMARY KEY,
                user_id INTEGER NOT NULL,
                domain TEXT NOT NULL,
                name TEXT NOT NULL,
                is_active BOOLEAN DEFAULT 1,
                created_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS keywords (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                keyword TEXT NOT NULL,
                target_url TEXT,
                current_position INTEGER,
                previous_position INTEGER,
                search_volume INTEGER,
                difficulty INTEGER,
                is_tracked BOOLEAN DEFAULT 1,
                updated_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS backlinks (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                source_url TEXT NOT NULL,
                target_url TEXT NOT NULL,
                anchor_text TEXT,
                domain_authority INTEGER,
                status TEXT NOT NULL DEFAULT 'pending',
                is_nofollow BOOLEAN DEFAULT 0,
                found_at TEXT,
                approved_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS content_analysis (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                url TEXT NOT NULL,
                title TEXT,
                meta_description TEXT,
                content TEXT,
                keyword_density TEXT,
                readability_score REAL,
                seo_score REAL,
                suggestions TEXT,
                analyzed_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS technical_audits (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                page_speed INTEGER,
                mobile_score INTEGER,
                broken_links INTEGER,
                missing_alt_tags INTEGER,
                missing_meta_tags INTEGER,
                duplicate_content INTEGER,
                issues TEXT,
                audited_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS local_seo_data (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                business_name TEXT,
                address TEXT,
                phone TEXT,
                gmb_score INTEGER,
                citations INTEGER,
                reviews INTEGER,
                average_rating REAL,
                updated_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS competitor_analysis (
                id INTEGER PRIMARY KEY,
                website_id INTEGER NOT NULL REFERENCES websites(id),
                competitor_domain TEXT NOT NULL,
                shared_keywords INTEGER,
                competitor_backlinks INTEGER,
                content_gaps TEXT,
                analyzed_at TEXT
            )
        ''')

        conn.commit()
        conn.close()
        logger.info("Database schema initialized successfully")

    def check_connection(self) -> bool:
        """Round-trip a trivial query"""
        conn = self._connect()
        try:
            conn.execute("SELECT 1").fetchone()
            return True
        finally:
            conn.close()

    def _insert(self, table: str, values: Dict[str, Any]) -> int:
        """Insert a row and return its id; dangling website references raise NotFoundError"""
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        conn = self._connect()
        try:
            cursor = conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(values.values())
            )
            conn.commit()
            return cursor.lastrowid
        except sqlite3.IntegrityError as e:
            if "FOREIGN KEY" in str(e):
                raise NotFoundError(f"Website {values.get('website_id')} does not exist") from e
            raise ValidationError(f"Invalid {table} row: {e}") from e
        finally:
            conn.close()

    def _fetch_all(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(query, params).fetchall()
        finally:
            conn.close()

    def _fetch_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(query, params).fetchone()
        finally:
            conn.close()

    # Websites

    @staticmethod
    def _website(row: sqlite3.Row) -> Website:
        return Website(
            id=row["id"],
            user_id=row["user_id"],
            domain=row["domain"],
            name=row["name"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"]
        )

    def get_websites_by_user_id(self, user_id: int) -> List[Website]:
        rows = self._fetch_all("SELECT * FROM websites WHERE user_id = ? ORDER BY id", (user_id,))
        return [self._website(row) for row in rows]

    def get_website(self, website_id: int) -> Optional[Website]:
        row = self._fetch_one("SELECT * FROM websites WHERE id = ?", (website_id,))
        return self._website(row) if row else None

    def create_website(self, user_id: int, domain: str, name: str, is_active: bool = True) -> Website:
        website_id = self._insert("websites", {
            "user_id": user_id,
            "domain": domain,
            "name": name,
            "is_active": is_active,
            "created_at": now_iso()
        })
        logger.info(f"Created website {website_id}: {domain}")
        return self.get_website(website_id)

    # Keywords

    @staticmethod
    def _keyword(row: sqlite3.Row) -> Keyword:
        return Keyword(
            id=row["id"],
            website_id=row["website_id"],
            keyword=row["keyword"],
            target_url=row["target_url"],
            current_position=row["current_position"],
            previous_position=row["previous_position"],
            search_volume=row["search_volume"],
            difficulty=row["difficulty"],
            is_tracked=bool(row["is_tracked"]),
            updated_at=row["updated_at"]
        )

    def get_keywords_by_website_id(self, website_id: int) -> List[Keyword]:
        rows = self._fetch_all(
            "SELECT * FROM keywords WHERE website_id = ? ORDER BY updated_at DESC, id DESC",
            (website_id,)
        )
        return [self._keyword(row) for row in rows]

    def get_keyword(self, keyword_id: int) -> Optional[Keyword]:
        row = self._fetch_one("SELECT * FROM keywords WHERE id = ?", (keyword_id,))
        return self._keyword(row) if row else None

    def create_keyword(self, website_id: int, keyword: str, target_url: str = None,
                       current_position: int = None, previous_position: int = None,
                       search_volume: int = None, difficulty: int = None,
                       is_tracked: bool = True) -> Keyword:
        keyword_id = self._insert("keywords", {
            "website_id": website_id,
            "keyword": keyword,
            "target_url": target_url,
            "current_position": current_position,
            "previous_position": previous_position,
            "search_volume": search_volume,
            "difficulty": difficulty,
            "is_tracked": is_tracked,
            "updated_at": now_iso()
        })
        logger.info(f"Created keyword {keyword_id} for website {website_id}: {keyword}")
        return self.get_keyword(keyword_id)

    def update_keyword_position(self, keyword_id: int, position: Optional[int]) -> bool:
        """Set the current position, moving the old current into previous"""
        conn = self._connect()
        try:
            cursor = conn.execute('''
                UPDATE keywords
                SET previous_position = current_position,
                    current_position = ?,
                    updated_at = ?
                WHERE id = ?
            ''', (position, now_iso(), keyword_id))
            conn.commit()
            logger.debug(f"Keyword {keyword_id} position -> {position}")
            return cursor.rowcount > 0
        finally:
            conn.close()

    # Backlinks

    @staticmethod
    def _backlink(row: sqlite3.Row) -> Backlink:
        return Backlink(
            id=row["id"],
            website_id=row["website_id"],
            source_url=row["source_url"],
            target_url=row["target_url"],
            anchor_text=row["anchor_text"],
            domain_authority=row["domain_authority"],
            status=row["status"],
            is_nofollow=bool(row["is_nofollow"]),
            found_at=row["found_at"],
            approved_at=row["approved_at"]
        )

    def get_backlinks_by_website_id(self, website_id: int) -> List[Backlink]:
        rows = self._fetch_all(
            "SELECT * FROM backlinks WHERE website_id = ? ORDER BY found_at DESC, id DESC",
            (website_id,)
        )
        return [self._backlink(row) for row in rows]

    def get_pending_backlinks(self, website_id: int) -> List[Backlink]:
        rows = self._fetch_all(
            "SELECT * FROM backlinks WHERE website_id = ? AND status = 'pending' "
            "ORDER BY found_at DESC, id DESC",
            (website_id,)
        )
        return [self._backlink(row) for row in rows]

    def get_backlink(self, backlink_id: int) -> Optional[Backlink]:
        row = self._fetch_one("SELECT * FROM backlinks WHERE id = ?", (backlink_id,))
        return self._backlink(row) if row else None

    def create_backlink(self, website_id: int, source_url: str, target_url: str,
                        anchor_text: str = None, domain_authority: int = None,
                        status: str = "pending", is_nofollow: bool = False) -> Backlink:
        if status not in BACKLINK_STATUSES:
            raise ValidationError(f"Invalid backlink status: {status}")
        backlink_id = self._insert("backlinks", {
            "website_id": website_id,
            "source_url": source_url,
            "target_url": target_url,
            "anchor_text": anchor_text,
            "domain_authority": domain_authority,
            "status": status,
            "is_nofollow": is_nofollow,
            "found_at": now_iso(),
            "approved_at": now_iso() if status == "approved" else None
        })
        return self.get_backlink(backlink_id)

    def update_backlink_status(self, backlink_id: int, status: str):
        """Move a backlink out of 'pending'; decided backlinks only accept their own status"""
        if status not in BACKLINK_STATUSES:
            raise ValidationError(f"Invalid backlink status: {status}")

        backlink = self.get_backlink(backlink_id)
        if backlink is None:
            raise NotFoundError(f"Backlink {backlink_id} does not exist")
        if backlink.status == status:
            return
        if backlink.status != "pending":
            raise ValidationError(
                f"Backlink {backlink_id} is already {backlink.status} and cannot become {status}"
            )

        conn = self._connect()
        try:
            cursor = conn.execute(
                "UPDATE backlinks SET status = ?, approved_at = ? WHERE id = ? AND status = 'pending'",
                (status, now_iso() if status == "approved" else None, backlink_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                # Another writer decided it between the read and the update
                current = self.get_backlink(backlink_id)
                if current.status == status:
                    return
                raise ValidationError(
                    f"Backlink {backlink_id} is already {current.status} and cannot become {status}"
                )
            logger.info(f"Backlink {backlink_id} status -> {status}")
        finally:
            conn.close()

    # Content analysis

    @staticmethod
    def _content_analysis(row: sqlite3.Row) -> ContentAnalysis:
        return ContentAnalysis(
            id=row["id"],
            website_id=row["website_id"],
            url=row["url"],
            title=row["title"],
            meta_description=row["meta_description"],
            content=row["content"],
            keyword_density=_loads(row["keyword_density"], None),
            readability_score=row["readability_score"],
            seo_score=row["seo_score"],
            suggestions=_loads(row["suggestions"], []),
            analyzed_at=row["analyzed_at"]
        )

    def get_content_analysis_by_website_id(self, website_id: int) -> List[ContentAnalysis]:
        rows = self._fetch_all(
            "SELECT * FROM content_analysis WHERE website_id = ? ORDER BY analyzed_at DESC, id DESC",
            (website_id,)
        )
        return [self._content_analysis(row) for row in rows]

    def create_content_analysis(self, website_id: int, url: str, title: str = None,
                                meta_description: str = None, content: str = None,
                                keyword_density: Any = None, readability_score: float = None,
                                seo_score: float = None, suggestions: List[str] = None) -> ContentAnalysis:
        analysis_id = self._insert("content_analysis", {
            "website_id": website_id,
            "url": url,
            "title": title,
            "meta_description": meta_description,
            "content": content,
            "keyword_density": json.dumps(keyword_density),
            "readability_score": readability_score,
            "seo_score": seo_score,
            "suggestions": json.dumps(suggestions or []),
            "analyzed_at": now_iso()
        })
        logger.info(f"Saved content analysis {analysis_id} for website {website_id}")
        row = self._fetch_one("SELECT * FROM content_analysis WHERE id = ?", (analysis_id,))
        return self._content_analysis(row)

    # Technical audits

    @staticmethod
    def _technical_audit(row: sqlite3.Row) -> TechnicalAudit:
        return TechnicalAudit(
            id=row["id"],
            website_id=row["website_id"],
            page_speed=row["page_speed"],
            mobile_score=row["mobile_score"],
            broken_links=row["broken_links"],
            missing_alt_tags=row["missing_alt_tags"],
            missing_meta_tags=row["missing_meta_tags"],
            duplicate_content=row["duplicate_content"],
            issues=_loads(row["issues"], []),
            audited_at=row["audited_at"]
        )

    def get_latest_technical_audit(self, website_id: int) -> Optional[TechnicalAudit]:
        row = self._fetch_one(
            "SELECT * FROM technical_audits WHERE website_id = ? "
            "ORDER BY audited_at DESC, id DESC LIMIT 1",
            (website_id,)
        )
        return self._technical_audit(row) if row else None

    def create_technical_audit(self, website_id: int, page_speed: int, mobile_score: int,
                               broken_links: int, missing_alt_tags: int, missing_meta_tags: int,
                               duplicate_content: int, issues: List[Dict[str, Any]]) -> TechnicalAudit:
        audit_id = self._insert("technical_audits", {
            "website_id": website_id,
            "page_speed": page_speed,
            "mobile_score": mobile_score,
            "broken_links": broken_links,
            "missing_alt_tags": missing_alt_tags,
            "missing_meta_tags": missing_meta_tags,
            "duplicate_content": duplicate_content,
            "issues": json.dumps(issues),
            "audited_at": now_iso()
        })
        logger.info(f"Saved technical audit {audit_id} for website {website_id}")
        row = self._fetch_one("SELECT * FROM technical_audits WHERE id = ?", (audit_id,))
        return self._technical_audit(row)

    # Local SEO

    @staticmethod
    def _local_seo(row: sqlite3.Row) -> LocalSeoData:
        return LocalSeoData(
            id=row["id"],
            website_id=row["website_id"],
            business_name=row["business_name"],
            address=row["address"],
            phone=row["phone"],
            gmb_score=row["gmb_score"],
            citations=row["citations"],
            reviews=row["reviews"],
            average_rating=row["average_rating"],
            updated_at=row["updated_at"]
        )

    def get_local_seo_data(self, website_id: int) -> Optional[LocalSeoData]:
        row = self._fetch_one(
            "SELECT * FROM local_seo_data WHERE website_id = ? "
            "ORDER BY updated_at DESC, id DESC LIMIT 1",
            (website_id,)
        )
        return self._local_seo(row) if row else None

    def upsert_local_seo_data(self, website_id: int, **fields) -> LocalSeoData:
        """Update the website's local SEO row in place, or create it"""
        allowed = ("business_name", "address", "phone", "gmb_score",
                   "citations", "reviews", "average_rating")
        values = {key: fields[key] for key in allowed if key in fields}
        values["updated_at"] = now_iso()

        existing = self.get_local_seo_data(website_id)
        if existing is None:
            row_id = self._insert("local_seo_data", {"website_id": website_id, **values})
        else:
            row_id = existing.id
            assignments = ", ".join(f"{key} = ?" for key in values)
            conn = self._connect()
            try:
                conn.execute(
                    f"UPDATE local_seo_data SET {assignments} WHERE id = ?",
                    (*values.values(), row_id)
                )
                conn.commit()
            finally:
                conn.close()

        logger.info(f"Upserted local SEO data for website {website_id}")
        row = self._fetch_one("SELECT * FROM local_seo_data WHERE id = ?", (row_id,))
        return self._local_seo(row)

    # Competitor analysis

    @staticmethod
    def _competitor_analysis(row: sqlite3.Row) -> CompetitorAnalysis:
        return CompetitorAnalysis(
            id=row["id"],
            website_id=row["website_id"],
            competitor_domain=row["competitor_domain"],
            shared_keywords=row["shared_keywords"],
            competitor_backlinks=row["competitor_backlinks"],
            content_gaps=_loads(row["content_gaps"], []),
            analyzed_at=row["analyzed_at"]
        )

    def get_competitor_analysis_by_website_id(self, website_id: int) -> List[CompetitorAnalysis]:
        rows = self._fetch_all(
            "SELECT * FROM competitor_analysis WHERE website_id = ? ORDER BY analyzed_at DESC, id DESC",
            (website_id,)
        )
        return [self._competitor_analysis(row) for row in rows]

    def create_competitor_analysis(self, website_id: int, competitor_domain: str,
                                   shared_keywords: int = None, competitor_backlinks: int = None,
                                   content_gaps: List[str] = None) -> CompetitorAnalysis:
        analysis_id = self._insert("competitor_analysis", {
            "website_id": website_id,
            "competitor_domain": competitor_domain,
            "shared_keywords": shared_keywords,
            "competitor_backlinks": competitor_backlinks,
            "content_gaps": json.dumps(content_gaps or []),
            "analyzed_at": now_iso()
        })
        logger.info(f"Saved competitor analysis for {competitor_domain}")
        row = self._fetch_one("SELECT * FROM competitor_analysis WHERE id = ?", (analysis_id,))
        return self._competitor_analysis(row)
